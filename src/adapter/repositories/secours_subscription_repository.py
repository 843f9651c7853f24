"""SQLAlchemy implementation of SecoursSubscriptionRepository"""

from datetime import datetime
from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.secours_subscription_repository import SecoursSubscriptionRepository
from src.domain.secours_subscription import SecoursSubscription


class SqlAlchemySecoursSubscriptionRepository(SecoursSubscriptionRepository):
    """
    SQLAlchemy implementation of SecoursSubscriptionRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE for balance changes
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, subscription_id: int, for_update: bool = False) -> Optional[SecoursSubscription]:
        """
        Retrieve a token subscription by ID with optional row-level locking

        Args:
            subscription_id: Token subscription ID
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            SecoursSubscription if found, None otherwise
        """
        stmt = select(SecoursSubscription).where(SecoursSubscription.id == subscription_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, subscription: SecoursSubscription) -> SecoursSubscription:
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription

    async def update(self, subscription: SecoursSubscription) -> SecoursSubscription:
        subscription.updated_at = datetime.utcnow()
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription
