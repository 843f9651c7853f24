"""ReconcilePendingPayments Use Case

Sweeps payments left pending (poller gone, webhook lost) and settles them.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable
from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import PaymentStatus
from .dtos import PendingPaymentsSweepDTO, VerifyPaymentCommandDTO
from .reconcile_payment import ReconcilePayment
from .verify_payment import VerifyPayment

logger = logging.getLogger(__name__)


class ReconcilePendingPayments:
    """
    Use Case: Re-verify old pending payments

    Business Rules:
    1. Only payments pending for at least min_age_seconds are considered
    2. Payments pending longer than timeout_hours are marked failed without
       asking the gateway
    3. One payment's failure does not stop the sweep
    4. Pending subscriptions are left pending (payment can be retried)
    """

    def __init__(
        self,
        payment_repo: PaymentRepository,
        verify_payment: VerifyPayment,
        reconcile_payment: ReconcilePayment,
        min_age_seconds: int = 120,
        timeout_hours: int = 72,
        batch_size: int = 100,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.payment_repo = payment_repo
        self.verify_payment = verify_payment
        self.reconcile_payment = reconcile_payment
        self.min_age_seconds = min_age_seconds
        self.timeout_hours = timeout_hours
        self.batch_size = batch_size
        self.clock = clock

    async def execute(self) -> Result[PendingPaymentsSweepDTO]:
        try:
            now = self.clock()
            timeout_cutoff = now - timedelta(hours=self.timeout_hours)
            payments = await self.payment_repo.list_pending(
                created_before=now - timedelta(seconds=self.min_age_seconds),
                limit=self.batch_size,
            )
        except Exception as e:
            return Return.err(
                Error(
                    code="RECONCILE_PENDING_FAILED",
                    message="Failed to load pending payments",
                    reason=str(e),
                )
            )

        summary = PendingPaymentsSweepDTO()
        # Snapshot before any use case commits or rolls back the session
        pending = [(p.reference, p.created_at) for p in payments]

        for reference, created_at in pending:
            summary.checked += 1

            if created_at < timeout_cutoff:
                result = await self.reconcile_payment.execute(
                    reference,
                    PaymentStatus.FAILED,
                    message=f"Aucune confirmation reçue après {self.timeout_hours} heures",
                )
                if result.is_ok():
                    summary.timed_out += 1
                else:
                    summary.errors.append({"payment_id": reference, "error": result.error.code})
                continue

            result = await self.verify_payment.execute(VerifyPaymentCommandDTO(payment_id=reference))
            if result.is_err():
                summary.errors.append({"payment_id": reference, "error": result.error.code})
                continue

            status = result.value.status
            if status == PaymentStatus.COMPLETED.value:
                summary.completed += 1
            elif status == PaymentStatus.PENDING.value:
                summary.still_pending += 1
            else:
                summary.failed += 1

        if summary.checked:
            logger.info(
                f"Pending payment sweep: {summary.checked} checked, {summary.completed} completed, "
                f"{summary.failed} failed, {summary.timed_out} timed out"
            )
        return Return.ok(summary)
