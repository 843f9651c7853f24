from .errors import DuplicateRecordError
from .subscription_repository import SubscriptionRepository
from .membership_card_repository import MembershipCardRepository
from .membership_catalog_repository import MembershipCatalogRepository
from .payment_repository import PaymentRepository
from .secours_subscription_repository import SecoursSubscriptionRepository
from .secours_transaction_repository import SecoursTransactionRepository

__all__ = [
    "DuplicateRecordError",
    "SubscriptionRepository",
    "MembershipCardRepository",
    "MembershipCatalogRepository",
    "PaymentRepository",
    "SecoursSubscriptionRepository",
    "SecoursTransactionRepository",
]
