"""VerifyPayment Use Case

Backs POST /api/payments/verify, the endpoint the payment status poller calls.
"""

import logging
from typing import Dict, Optional
from libs.result import Result, Return, Error
from src.app.services.payment_gateway import PaymentGateway, PaymentGatewayError
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import PaymentMethod, PaymentStatus
from .dtos import VerifyPaymentCommandDTO, VerifyPaymentResponseDTO
from .reconcile_payment import ReconcilePayment

logger = logging.getLogger(__name__)


class VerifyPayment:
    """
    Use Case: Report the current status of a payment, reconciling if it moved

    Business Rules:
    1. Unknown payment ids answer pending (the payment may not be recorded yet)
    2. Terminal payments answer their stored status without calling the gateway
    3. Pending payments are checked with the gateway they were made with; a
       terminal answer is reconciled before responding
    4. Gateway errors answer pending so the poller keeps going
    """

    def __init__(
        self,
        payment_repo: PaymentRepository,
        gateways: Dict[PaymentMethod, PaymentGateway],
        reconcile_payment: ReconcilePayment,
    ):
        self.payment_repo = payment_repo
        self.gateways = gateways
        self.reconcile_payment = reconcile_payment

    async def execute(self, command: VerifyPaymentCommandDTO) -> Result[VerifyPaymentResponseDTO]:
        """
        Execute verification

        Args:
            command: VerifyPaymentCommandDTO with payment_id and gateway

        Returns:
            Result[VerifyPaymentResponseDTO]
        """
        if not command.payment_id:
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message="Identifiant de paiement manquant",
                    reason="payment_id is required",
                )
            )

        try:
            payment = await self.payment_repo.get_by_reference(command.payment_id)
            if not payment:
                return Return.ok(self._pending(command.payment_id, "Paiement en cours d'enregistrement"))

            if payment.status.is_terminal:
                return Return.ok(
                    VerifyPaymentResponseDTO(
                        status=payment.status.value,
                        payment_id=payment.reference,
                        message=payment.failure_reason,
                        subscription_id=payment.subscription_id,
                    )
                )

            if command.gateway and command.gateway != payment.payment_method.value:
                logger.warning(
                    f"Verify for {payment.reference} named gateway {command.gateway}, "
                    f"payment was made with {payment.payment_method.value}"
                )

            gateway = self.gateways.get(payment.payment_method)
            if gateway is None:
                return Return.ok(self._pending(payment.reference, "Vérification indisponible pour ce moyen de paiement"))

            try:
                outcome = await gateway.check_status(payment.reference)
            except PaymentGatewayError as e:
                logger.warning(f"Status check for {payment.reference} failed: {e.message}")
                return Return.ok(self._pending(payment.reference, e.message))

            if outcome.status == PaymentStatus.PENDING:
                return Return.ok(self._pending(payment.reference, outcome.message))

            reconciled = await self.reconcile_payment.execute(
                payment.reference,
                outcome.status,
                external_transaction_id=outcome.external_transaction_id,
                message=outcome.message,
            )
            if reconciled.is_err():
                return Return.err(reconciled.error)

            result = reconciled.value
            return Return.ok(
                VerifyPaymentResponseDTO(
                    status=result.status,
                    payment_id=result.payment_id,
                    message=outcome.message,
                    subscription_id=result.subscription_id,
                    card_identifier=result.card_identifier,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="VERIFY_PAYMENT_FAILED",
                    message="Impossible de vérifier le paiement",
                    reason=str(e),
                )
            )

    @staticmethod
    def _pending(payment_id: str, message: Optional[str] = None) -> VerifyPaymentResponseDTO:
        return VerifyPaymentResponseDTO(
            status=PaymentStatus.PENDING.value,
            payment_id=payment_id,
            message=message,
        )
