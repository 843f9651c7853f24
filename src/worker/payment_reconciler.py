"""Pending Payment Reconciliation Background Worker

Re-verifies payments left pending (client stopped polling, webhook lost)
and fails the ones that never got confirmed.
"""

import asyncio
import logging
from typing import Dict, Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.adapter.services.payment_gateway_factory import create_payment_gateways
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.payments import ReconcilePendingPayments, PendingPaymentsSweepDTO
from src.app.use_cases.payments.verify_payment import VerifyPayment
from src.domain.payment import PaymentMethod
from src.depends import build_reconcile_payment

logger = logging.getLogger(__name__)


class PaymentReconcilerWorker:
    """
    Background worker for pending payment reconciliation

    Features:
    - Asks the gateway about payments pending longer than min_age_seconds
    - Fails payments pending longer than timeout_hours
    - Pending subscriptions are left pending so the user can pay again

    Usage:
        worker = PaymentReconcilerWorker()
        summary = await worker.run_once()
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        gateways: Optional[Dict[PaymentMethod, PaymentGateway]] = None,
        min_age_seconds: Optional[int] = None,
        timeout_hours: Optional[int] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            gateways: Gateway map (defaults to the configured gateways)
            min_age_seconds: Defaults to PAYMENT_RECONCILE_MIN_AGE_SECONDS
            timeout_hours: Defaults to PENDING_PAYMENT_TIMEOUT_HOURS
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.gateways = gateways if gateways is not None else create_payment_gateways(ApplicationConfig)
        self.min_age_seconds = (
            min_age_seconds if min_age_seconds is not None
            else ApplicationConfig.PAYMENT_RECONCILE_MIN_AGE_SECONDS
        )
        self.timeout_hours = (
            timeout_hours if timeout_hours is not None
            else ApplicationConfig.PENDING_PAYMENT_TIMEOUT_HOURS
        )

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info(
            f"PaymentReconcilerWorker initialized with gateways: "
            f"{sorted(m.value for m in self.gateways)}"
        )

    async def run_once(self) -> PendingPaymentsSweepDTO:
        """
        Sweep pending payments once

        Returns:
            PendingPaymentsSweepDTO with per-outcome counts
        """
        if not getattr(ApplicationConfig, "PAYMENT_RECONCILE_ENABLED", True):
            logger.info("Payment reconciliation is disabled, skipping")
            return PendingPaymentsSweepDTO()

        async with self.async_session_factory() as session:
            payment_repo = SqlAlchemyPaymentRepository(session)
            reconcile_payment = build_reconcile_payment(session)
            use_case = ReconcilePendingPayments(
                payment_repo=payment_repo,
                verify_payment=VerifyPayment(payment_repo, self.gateways, reconcile_payment),
                reconcile_payment=reconcile_payment,
                min_age_seconds=self.min_age_seconds,
                timeout_hours=self.timeout_hours,
            )
            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Payment reconciliation failed: {result.error.reason}")
                raise RuntimeError(f"Payment reconciliation failed: {result.error.message}")

            summary = result.value
            for failure in summary.errors:
                logger.error(f"  - Payment {failure['payment_id']}: {failure['error']}")
            return summary

    async def run_forever(self, interval_seconds: int = 300):
        """
        Sweep continuously at the given interval

        Args:
            interval_seconds: Seconds between sweeps (default: 5 minutes)
        """
        logger.info(f"Starting continuous payment reconciliation with {interval_seconds}s interval")

        while True:
            try:
                summary = await self.run_once()
                logger.info(
                    f"Reconciliation cycle complete. Checked {summary.checked}, "
                    f"completed {summary.completed}, failed {summary.failed}, "
                    f"timed out {summary.timed_out}, still pending {summary.still_pending}"
                )
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("PaymentReconcilerWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.payment_reconciler --once

        # Run continuously (default: PAYMENT_RECONCILE_INTERVAL_SECONDS)
        python -m src.worker.payment_reconciler
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Pending Payment Reconciliation Worker")
    parser.add_argument(
        "--once", action="store_true", help="Run once and exit"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.PAYMENT_RECONCILE_INTERVAL_SECONDS,
        help="Interval between runs in seconds"
    )
    args = parser.parse_args()

    worker = PaymentReconcilerWorker()

    try:
        if args.once:
            summary = await worker.run_once()
            print("Payment reconciliation complete:")
            print(f"  Checked: {summary.checked}")
            print(f"  Completed: {summary.completed}")
            print(f"  Failed: {summary.failed}")
            print(f"  Timed out: {summary.timed_out}")
            print(f"  Still pending: {summary.still_pending}")
            if summary.errors:
                print(f"  Errors: {len(summary.errors)}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
