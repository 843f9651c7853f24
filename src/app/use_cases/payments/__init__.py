"""Payment use cases"""
from .initiate_subscription_payment import InitiateSubscriptionPayment
from .reconcile_payment import ReconcilePayment
from .verify_payment import VerifyPayment
from .handle_payment_notification import HandlePaymentNotification
from .reconcile_pending_payments import ReconcilePendingPayments
from .gateway_support import gateway_error, resolve_gateway, PHONE_REQUIRED_METHODS
from .dtos import (
    InitiatePaymentCommandDTO,
    PaymentResponseDTO,
    VerifyPaymentCommandDTO,
    VerifyPaymentResponseDTO,
    ReconciliationResultDTO,
    NotificationAckDTO,
    PendingPaymentsSweepDTO,
)

__all__ = [
    "InitiateSubscriptionPayment",
    "ReconcilePayment",
    "VerifyPayment",
    "HandlePaymentNotification",
    "ReconcilePendingPayments",
    "gateway_error",
    "resolve_gateway",
    "PHONE_REQUIRED_METHODS",
    "InitiatePaymentCommandDTO",
    "PaymentResponseDTO",
    "VerifyPaymentCommandDTO",
    "VerifyPaymentResponseDTO",
    "ReconciliationResultDTO",
    "NotificationAckDTO",
    "PendingPaymentsSweepDTO",
]
