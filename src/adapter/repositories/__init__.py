from .subscription_repository import SqlAlchemySubscriptionRepository
from .membership_card_repository import SqlAlchemyMembershipCardRepository
from .membership_catalog_repository import SqlAlchemyMembershipCatalogRepository
from .payment_repository import SqlAlchemyPaymentRepository
from .secours_subscription_repository import SqlAlchemySecoursSubscriptionRepository
from .secours_transaction_repository import SqlAlchemySecoursTransactionRepository

__all__ = [
    "SqlAlchemySubscriptionRepository",
    "SqlAlchemyMembershipCardRepository",
    "SqlAlchemyMembershipCatalogRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemySecoursSubscriptionRepository",
    "SqlAlchemySecoursTransactionRepository",
]
