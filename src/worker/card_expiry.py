"""Membership Card Expiry Background Worker

Marks active membership cards whose expiry date has passed as expired.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.membership_card_repository import SqlAlchemyMembershipCardRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.membership import ExpireMembershipCards, ExpireCardsResponseDTO

logger = logging.getLogger(__name__)


class MembershipCardExpiryWorker:
    """
    Background worker for membership card expiry

    Usage:
        # Run once
        worker = MembershipCardExpiryWorker()
        result = await worker.run_once()

        # Run continuously
        await worker.run_forever(interval_seconds=3600)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        batch_size: int = 500,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            batch_size: Maximum cards expired per run
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.batch_size = batch_size

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("MembershipCardExpiryWorker initialized")

    async def run_once(self) -> ExpireCardsResponseDTO:
        """
        Expire overdue cards once

        Returns:
            ExpireCardsResponseDTO with the expired card identifiers
        """
        if not getattr(ApplicationConfig, "CARD_EXPIRY_ENABLED", True):
            logger.info("Card expiry is disabled, skipping")
            return ExpireCardsResponseDTO(expired_count=0)

        async with self.async_session_factory() as session:
            use_case = ExpireMembershipCards(
                uow=SqlAlchemyUnitOfWork(session),
                card_repo=SqlAlchemyMembershipCardRepository(session),
                batch_size=self.batch_size,
            )
            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Card expiry failed: {result.error.reason}")
                raise RuntimeError(f"Card expiry failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 3600):
        """
        Expire cards continuously at the given interval

        Args:
            interval_seconds: Seconds between runs (default: 1 hour)
        """
        logger.info(f"Starting continuous card expiry with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(f"Card expiry cycle complete. Expired {result.expired_count} cards")
            except Exception as e:
                logger.error(f"Card expiry cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("MembershipCardExpiryWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.card_expiry

        # Run continuously
        python -m src.worker.card_expiry --continuous --interval 3600
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Membership Card Expiry Worker")
    parser.add_argument(
        "--continuous", action="store_true", help="Keep running at --interval"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.CARD_EXPIRY_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: CARD_EXPIRY_INTERVAL_SECONDS)"
    )
    args = parser.parse_args()

    worker = MembershipCardExpiryWorker()

    try:
        if args.continuous:
            await worker.run_forever(interval_seconds=args.interval)
        else:
            result = await worker.run_once()
            print("Card expiry complete:")
            print(f"  Cards expired: {result.expired_count}")
            for identifier in result.card_identifiers:
                print(f"  - {identifier}")
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
