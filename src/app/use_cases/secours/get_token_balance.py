"""GetTokenBalance Use Case"""

from datetime import datetime
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.repositories.secours_subscription_repository import SecoursSubscriptionRepository
from src.app.repositories.secours_transaction_repository import SecoursTransactionRepository
from src.domain.secours_subscription import (
    PURCHASE_LIMITS,
    LOW_BALANCE_THRESHOLD,
    token_value_for,
    rescue_value_for,
    calendar_month_bounds,
)
from .dtos import TokenBalanceResponseDTO


class GetTokenBalance:
    """
    Use Case: Token balance and this month's purchase allowance

    Read-only; no locking.
    """

    def __init__(
        self,
        secours_subscription_repo: SecoursSubscriptionRepository,
        secours_transaction_repo: SecoursTransactionRepository,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.secours_subscription_repo = secours_subscription_repo
        self.secours_transaction_repo = secours_transaction_repo
        self.clock = clock

    async def execute(
        self, subscription_id: int, requesting_user_id: Optional[str] = None
    ) -> Result[TokenBalanceResponseDTO]:
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

            period_start, period_end = calendar_month_bounds(self.clock())
            purchased = await self.secours_transaction_repo.sum_purchased_tokens(
                account.id, period_start, period_end
            )
            minimum, maximum = PURCHASE_LIMITS[account.subscription_type]

            return Return.ok(
                TokenBalanceResponseDTO(
                    subscription_id=account.id,
                    subscription_type=account.subscription_type.value,
                    token_balance=account.token_balance,
                    token_value_fcfa=token_value_for(account.subscription_type),
                    rescue_value_fcfa=rescue_value_for(account.subscription_type),
                    is_active=account.is_active,
                    purchased_this_month=purchased,
                    monthly_minimum=minimum,
                    monthly_maximum=maximum,
                    remaining_monthly_allowance=max(maximum - purchased, 0),
                    low_balance_warning=account.token_balance < LOW_BALANCE_THRESHOLD,
                    last_token_purchase_date=account.last_token_purchase_date,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_TOKEN_BALANCE_FAILED",
                    message="Impossible de charger le solde de tokens",
                    reason=str(e),
                )
            )
