"""ReconcilePayment Use Case

Applies a gateway-reported payment outcome to the local payment and to what
it paid for. Every completion path (poller verification, webhook, reconciler
worker) ends here.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.payment_repository import PaymentRepository
from src.app.use_cases.membership.activate_subscription import ActivateSubscription
from src.app.use_cases.membership.dtos import ActivateSubscriptionCommandDTO
from src.app.use_cases.secours.confirm_token_payment import ConfirmTokenPayment
from src.app.use_cases.secours.dtos import ConfirmTokenPaymentCommandDTO
from src.domain.payment import Payment, PaymentPurpose, PaymentStatus
from .dtos import ReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcilePayment:
    """
    Use Case: Settle a payment from its gateway status

    Business Rules:
    1. Terminal payments are never changed again
    2. completed + membership: ActivateSubscription (idempotent)
    3. completed + tokens: ConfirmTokenPayment credits the balance once
    4. failed/cancelled: payment marked with that status, token transaction failed
    5. The payment is completed even when fulfilment fails (money was taken);
       the fulfilment error is kept on the payment for follow-up

    Flow:
    1. Lock payment, skip if terminal or still pending
    2. Fulfil (activation / token credit) in its own commit
    3. Re-read payment with lock, record outcome, commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        activate_subscription: ActivateSubscription,
        confirm_token_payment: ConfirmTokenPayment,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.activate_subscription = activate_subscription
        self.confirm_token_payment = confirm_token_payment
        self.clock = clock

    async def execute(
        self,
        reference: str,
        status: PaymentStatus,
        external_transaction_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> Result[ReconciliationResultDTO]:
        """
        Execute reconciliation

        Args:
            reference: Payment reference
            status: Status reported by the gateway
            external_transaction_id: Gateway-side id, stored when present
            message: Gateway message, kept as failure reason

        Returns:
            Result[ReconciliationResultDTO]
        """
        try:
            # Step 1: Lock payment
            payment = await self.payment_repo.get_by_reference(reference, for_update=True)
            if not payment:
                return Return.err(
                    Error(
                        code="PAYMENT_NOT_FOUND",
                        message="Paiement introuvable",
                        reason=f"Payment {reference} does not exist",
                    )
                )

            if payment.status.is_terminal or status == PaymentStatus.PENDING:
                return Return.ok(self._to_response_dto(payment))

            # Step 2: Fulfil
            if status == PaymentStatus.COMPLETED:
                fulfilment = await self._fulfil(payment)
            else:
                fulfilment = await self._release(payment, message)

            # Step 3: Record outcome
            payment = await self.payment_repo.get_by_reference(reference, for_update=True)
            if payment.status.is_terminal:
                return Return.ok(self._to_response_dto(payment, fulfilment))

            payment.status = status
            payment.completed_at = self.clock()
            if external_transaction_id:
                payment.external_transaction_id = external_transaction_id
            if status == PaymentStatus.COMPLETED:
                payment.failure_reason = None
            else:
                payment.failure_reason = message or f"Payment {status.value}"
            if fulfilment.fulfilment_error:
                payment.metadata_json = {
                    **(payment.metadata_json or {}),
                    "fulfilment_error": fulfilment.fulfilment_error,
                }
            payment = await self.payment_repo.update(payment)
            await self.uow.commit()

            if fulfilment.fulfilment_error:
                logger.error(
                    f"Payment {reference} completed but fulfilment failed: {fulfilment.fulfilment_error}"
                )
            else:
                logger.info(f"Payment {reference} reconciled as {status.value}")

            return Return.ok(self._to_response_dto(payment, fulfilment))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="RECONCILE_PAYMENT_FAILED",
                    message="Impossible de traiter le paiement",
                    reason=str(e),
                )
            )

    async def _fulfil(self, payment: Payment) -> ReconciliationResultDTO:
        result = ReconciliationResultDTO(
            payment_id=payment.reference,
            status=PaymentStatus.COMPLETED.value,
            purpose=payment.purpose.value,
            subscription_id=payment.subscription_id,
        )

        if payment.purpose == PaymentPurpose.MEMBERSHIP:
            activation = await self.activate_subscription.execute(
                ActivateSubscriptionCommandDTO(
                    subscription_id=payment.subscription_id,
                    payment_id=payment.reference,
                )
            )
            if activation.is_err():
                result.fulfilment_error = activation.error.code
            else:
                result.fulfilled = True
                result.card_identifier = activation.value.card.card_identifier
            return result

        settlement = await self.confirm_token_payment.execute(
            ConfirmTokenPaymentCommandDTO(
                transaction_id=payment.secours_transaction_id, succeeded=True
            )
        )
        if settlement.is_err():
            result.fulfilment_error = settlement.error.code
        else:
            result.fulfilled = True
        return result

    async def _release(self, payment: Payment, message: Optional[str]) -> ReconciliationResultDTO:
        result = ReconciliationResultDTO(
            payment_id=payment.reference,
            status=payment.status.value,
            purpose=payment.purpose.value,
            subscription_id=payment.subscription_id,
        )

        # Pending subscriptions stay pending so the user can pay again
        if payment.purpose == PaymentPurpose.TOKENS and payment.secours_transaction_id:
            settlement = await self.confirm_token_payment.execute(
                ConfirmTokenPaymentCommandDTO(
                    transaction_id=payment.secours_transaction_id,
                    succeeded=False,
                    failure_reason=message,
                )
            )
            if settlement.is_err():
                result.fulfilment_error = settlement.error.code
        return result

    def _to_response_dto(
        self, payment: Payment, fulfilment: Optional[ReconciliationResultDTO] = None
    ) -> ReconciliationResultDTO:
        return ReconciliationResultDTO(
            payment_id=payment.reference,
            status=payment.status.value,
            purpose=payment.purpose.value,
            fulfilled=fulfilment.fulfilled if fulfilment else False,
            fulfilment_error=fulfilment.fulfilment_error if fulfilment else None,
            subscription_id=payment.subscription_id,
            card_identifier=fulfilment.card_identifier if fulfilment else None,
        )
