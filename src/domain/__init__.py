from .base import BaseModel
from .membership_product import (
    MembershipProduct,
    MembershipPricing,
    MembershipCycle,
    ProductKind,
    AdultTier,
)
from .subscription import Subscription, SubscriptionStatus, LifecycleMetadata
from .membership_card import MembershipCard, CardStatus
from .payment import Payment, PaymentMethod, PaymentStatus, PaymentPurpose
from .secours_subscription import SecoursSubscription, SecoursServiceType
from .secours_transaction import (
    SecoursTransaction,
    SecoursTransactionType,
    SecoursPaymentStatus,
)

__all__ = [
    "BaseModel",
    "MembershipProduct",
    "MembershipPricing",
    "MembershipCycle",
    "ProductKind",
    "AdultTier",
    "Subscription",
    "SubscriptionStatus",
    "LifecycleMetadata",
    "MembershipCard",
    "CardStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "PaymentPurpose",
    "SecoursSubscription",
    "SecoursServiceType",
    "SecoursTransaction",
    "SecoursTransactionType",
    "SecoursPaymentStatus",
]
