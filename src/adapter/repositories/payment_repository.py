"""SQLAlchemy implementation of PaymentRepository"""

from datetime import datetime
from typing import Optional, List
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.errors import DuplicateRecordError
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import Payment, PaymentStatus


class SqlAlchemyPaymentRepository(PaymentRepository):
    """
    SQLAlchemy implementation of PaymentRepository

    Features:
    - Lookup by gateway reference with optional row lock
    - Pending-payment scan for the reconciler worker
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_reference(self, reference: str, for_update: bool = False) -> Optional[Payment]:
        """
        Retrieve a payment by gateway order reference

        Args:
            reference: Order reference
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Payment if found, None otherwise
        """
        stmt = select(Payment).where(Payment.reference == reference)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_pending(self, created_before: datetime, limit: int = 100) -> List[Payment]:
        stmt = (
            select(Payment)
            .where(
                Payment.status == PaymentStatus.PENDING,
                Payment.created_at < created_before,
            )
            .order_by(Payment.created_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, payment: Payment) -> Payment:
        self.session.add(payment)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateRecordError("payment", f"reference={payment.reference}") from e
        await self.session.refresh(payment)
        return payment

    async def update(self, payment: Payment) -> Payment:
        payment.updated_at = datetime.utcnow()
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment
