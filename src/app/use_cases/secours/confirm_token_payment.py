"""ConfirmTokenPayment Use Case

Settles a pending gateway token purchase once the payment outcome is known.
"""

import logging
from datetime import datetime
from typing import Callable
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.secours_subscription_repository import SecoursSubscriptionRepository
from src.app.repositories.secours_transaction_repository import SecoursTransactionRepository
from src.domain.secours_transaction import SecoursTransaction, SecoursPaymentStatus
from .dtos import ConfirmTokenPaymentCommandDTO, TokenSettlementResponseDTO, TokenTransactionDTO

logger = logging.getLogger(__name__)


def to_transaction_dto(transaction: SecoursTransaction) -> TokenTransactionDTO:
    return TokenTransactionDTO(
        id=transaction.id,
        transaction_type=transaction.transaction_type.value,
        token_amount=transaction.token_amount,
        token_value_fcfa=transaction.token_value_fcfa,
        total_price_fcfa=transaction.total_price_fcfa,
        payment_method=transaction.payment_method.value,
        payment_status=transaction.payment_status.value,
        payment_reference=transaction.payment_reference,
        created_at=transaction.created_at,
        completed_at=transaction.completed_at,
    )


class ConfirmTokenPayment:
    """
    Use Case: Credit or fail a pending token purchase

    Business Rules:
    1. Idempotent: a completed transaction is never credited twice
    2. succeeded=True credits token_amount to the balance and marks the transaction completed
    3. succeeded=False marks a pending transaction failed; the balance is untouched
    4. A late success on a transaction already marked failed is still credited

    Flow:
    1. Lock transaction, then its secours subscription
    2. Apply outcome
    3. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        secours_subscription_repo: SecoursSubscriptionRepository,
        secours_transaction_repo: SecoursTransactionRepository,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.secours_subscription_repo = secours_subscription_repo
        self.secours_transaction_repo = secours_transaction_repo
        self.clock = clock

    async def execute(self, command: ConfirmTokenPaymentCommandDTO) -> Result[TokenSettlementResponseDTO]:
        try:
            # Step 1: Lock rows
            transaction = await self.secours_transaction_repo.get_by_id(
                command.transaction_id, for_update=True
            )
            if not transaction:
                return Return.err(
                    Error(
                        code="TOKEN_TRANSACTION_NOT_FOUND",
                        message="Transaction Ô Secours introuvable",
                        reason=f"Secours transaction {command.transaction_id} does not exist",
                    )
                )

            account = await self.secours_subscription_repo.get_by_id(
                transaction.subscription_id, for_update=True
            )
            if not account:
                return Return.err(
                    Error(
                        code="SECOURS_SUBSCRIPTION_NOT_FOUND",
                        message="Abonnement Ô Secours introuvable",
                        reason=f"Secours subscription {transaction.subscription_id} does not exist",
                    )
                )

            # Step 2: Apply outcome
            if transaction.payment_status == SecoursPaymentStatus.COMPLETED:
                return Return.ok(self._to_response_dto(transaction, account.token_balance))

            now = self.clock()
            credited = False

            if command.succeeded:
                if transaction.payment_status == SecoursPaymentStatus.FAILED:
                    logger.warning(f"Late payment confirmation for failed token transaction {transaction.id}")
                account.token_balance += transaction.token_amount
                account.last_token_purchase_date = now
                await self.secours_subscription_repo.update(account)
                transaction.payment_status = SecoursPaymentStatus.COMPLETED
                credited = True
            elif transaction.payment_status == SecoursPaymentStatus.PENDING:
                transaction.payment_status = SecoursPaymentStatus.FAILED
            else:
                return Return.ok(self._to_response_dto(transaction, account.token_balance))

            transaction.completed_at = now
            transaction = await self.secours_transaction_repo.update(transaction)

            # Step 3: Commit
            await self.uow.commit()

            if credited:
                logger.info(
                    f"Credited {transaction.token_amount} tokens to secours subscription {account.id} "
                    f"(balance {account.token_balance})"
                )
            else:
                logger.info(
                    f"Token transaction {transaction.id} failed: {command.failure_reason or 'payment not completed'}"
                )
            return Return.ok(self._to_response_dto(transaction, account.token_balance, credited))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CONFIRM_TOKEN_PAYMENT_FAILED",
                    message="Impossible de confirmer le paiement des tokens",
                    reason=str(e),
                )
            )

    def _to_response_dto(
        self, transaction: SecoursTransaction, balance: int, credited: bool = False
    ) -> TokenSettlementResponseDTO:
        return TokenSettlementResponseDTO(
            transaction=to_transaction_dto(transaction),
            token_balance=balance,
            credited=credited,
        )
