"""ListTokenTransactions Use Case"""

from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.secours_subscription_repository import SecoursSubscriptionRepository
from src.app.repositories.secours_transaction_repository import SecoursTransactionRepository
from .confirm_token_payment import to_transaction_dto
from .dtos import ListTokenTransactionsResponseDTO

MAX_PAGE_SIZE = 100


class ListTokenTransactions:
    """
    Use Case: Paginated token transaction history, newest first

    Business Rules:
    1. limit is clamped to 1..100, offset to >= 0
    2. Only the owner may list when requesting_user_id is given
    """

    def __init__(
        self,
        secours_subscription_repo: SecoursSubscriptionRepository,
        secours_transaction_repo: SecoursTransactionRepository,
    ):
        self.secours_subscription_repo = secours_subscription_repo
        self.secours_transaction_repo = secours_transaction_repo

    async def execute(
        self,
        subscription_id: int,
        limit: int = 20,
        offset: int = 0,
        requesting_user_id: Optional[str] = None,
    ) -> Result[ListTokenTransactionsResponseDTO]:
        try:
            account = await self.secours_subscription_repo.get_by_id(subscription_id)
            if not account:
                return Return.err(
                    Error(
                        code="SECOURS_SUBSCRIPTION_NOT_FOUND",
                        message="Abonnement Ô Secours introuvable",
                        reason=f"Secours subscription {subscription_id} does not exist",
                    )
                )
            if requesting_user_id and account.user_id != requesting_user_id:
                return Return.err(
                    Error(
                        code="UNAUTHORIZED",
                        message="Non autorisé à consulter cet abonnement",
                        reason=f"User {requesting_user_id} does not own secours subscription {account.id}",
                    )
                )

            limit = min(max(limit, 1), MAX_PAGE_SIZE)
            offset = max(offset, 0)
            transactions, total = await self.secours_transaction_repo.list_by_subscription(
                account.id, limit=limit, offset=offset
            )

            return Return.ok(
                ListTokenTransactionsResponseDTO(
                    subscription_id=account.id,
                    transactions=[to_transaction_dto(t) for t in transactions],
                    total=total,
                    limit=limit,
                    offset=offset,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_TOKEN_TRANSACTIONS_FAILED",
                    message="Impossible de charger l'historique des tokens",
                    reason=str(e),
                )
            )
