"""Background workers for the membership service"""
from .card_expiry import MembershipCardExpiryWorker
from .payment_reconciler import PaymentReconcilerWorker

__all__ = ["MembershipCardExpiryWorker", "PaymentReconcilerWorker"]
