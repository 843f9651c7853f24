"""SQLAlchemy implementation of SecoursTransactionRepository"""

from datetime import datetime
from typing import Optional, List, Tuple
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.secours_transaction_repository import SecoursTransactionRepository
from src.domain.secours_transaction import (
    SecoursTransaction,
    SecoursTransactionType,
    SecoursPaymentStatus,
)


class SqlAlchemySecoursTransactionRepository(SecoursTransactionRepository):
    """SQLAlchemy implementation of SecoursTransactionRepository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, transaction_id: int, for_update: bool = False) -> Optional[SecoursTransaction]:
        stmt = select(SecoursTransaction).where(SecoursTransaction.id == transaction_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def sum_purchased_tokens(
        self, subscription_id: int, period_start: datetime, period_end: datetime
    ) -> int:
        """
        Total tokens bought in [period_start, period_end)

        Failed purchases are excluded; pending ones count so that concurrent
        purchases cannot overshoot the monthly maximum.
        """
        stmt = select(func.coalesce(func.sum(SecoursTransaction.token_amount), 0)).where(
            SecoursTransaction.subscription_id == subscription_id,
            SecoursTransaction.transaction_type == SecoursTransactionType.PURCHASE,
            SecoursTransaction.payment_status.in_([
                SecoursPaymentStatus.PENDING,
                SecoursPaymentStatus.COMPLETED,
            ]),
            SecoursTransaction.created_at >= period_start,
            SecoursTransaction.created_at < period_end,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)

    async def list_by_subscription(
        self, subscription_id: int, limit: int = 20, offset: int = 0
    ) -> Tuple[List[SecoursTransaction], int]:
        """
        Retrieve transactions of a token subscription with pagination

        Args:
            subscription_id: Token subscription ID
            limit: Maximum number of transactions to return
            offset: Number of transactions to skip

        Returns:
            Tuple of (list of SecoursTransaction, total count)
        """
        count_stmt = select(func.count()).select_from(SecoursTransaction).where(
            SecoursTransaction.subscription_id == subscription_id
        )
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar()

        stmt = (
            select(SecoursTransaction)
            .where(SecoursTransaction.subscription_id == subscription_id)
            .order_by(SecoursTransaction.created_at.desc(), SecoursTransaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def create(self, transaction: SecoursTransaction) -> SecoursTransaction:
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def update(self, transaction: SecoursTransaction) -> SecoursTransaction:
        transaction.updated_at = datetime.utcnow()
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction
