"""SQLAlchemy Subscription Repository Implementation

Implements subscription persistence using SQLAlchemy async session.
"""

from typing import Optional, List
from sqlalchemy.exc import IntegrityError
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.errors import DuplicateRecordError
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.subscription import Subscription, SubscriptionStatus


class SqlAlchemySubscriptionRepository(SubscriptionRepository):
    """
    SQLAlchemy implementation of SubscriptionRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE
    - Unique-index violations surfaced as DuplicateRecordError
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, subscription_id: int, for_update: bool = False) -> Optional[Subscription]:
        statement = select(Subscription).where(Subscription.id == subscription_id)

        if for_update:
            statement = statement.with_for_update()

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_active_for_user(
        self, user_id: str, is_child: bool, for_update: bool = False
    ) -> Optional[Subscription]:
        statement = select(Subscription).where(
            Subscription.user_id == user_id,
            Subscription.is_child == is_child,
            Subscription.status == SubscriptionStatus.ACTIVE,
        )

        if for_update:
            statement = statement.with_for_update()

        result = await self.session.execute(statement)
        return result.scalars().first()

    async def list_active_for_user(self, user_id: str) -> List[Subscription]:
        statement = select(Subscription).where(
            Subscription.user_id == user_id,
            Subscription.status == SubscriptionStatus.ACTIVE,
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_by_user(self, user_id: str) -> List[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def has_activated_before(self, user_id: str, is_child: bool, exclude_id: int) -> bool:
        statement = select(func.count()).select_from(Subscription).where(
            Subscription.user_id == user_id,
            Subscription.is_child == is_child,
            Subscription.id != exclude_id,
            Subscription.status.in_([
                SubscriptionStatus.ACTIVE,
                SubscriptionStatus.PAUSED,
                SubscriptionStatus.CANCELLED,
            ]),
            Subscription.end_date.is_not(None),
        )
        result = await self.session.execute(statement)
        return (result.scalar() or 0) > 0

    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription

        Args:
            subscription: Subscription entity to persist

        Returns:
            Created Subscription with generated ID
        """
        self.session.add(subscription)
        await self._flush(subscription)
        await self.session.refresh(subscription)
        return subscription

    async def update(self, subscription: Subscription) -> Subscription:
        """
        Update an existing subscription

        Args:
            subscription: Subscription entity with updated values

        Returns:
            Updated Subscription

        Raises:
            DuplicateRecordError: If another active subscription exists for
                the same user and category
        """
        self.session.add(subscription)
        await self._flush(subscription)
        await self.session.refresh(subscription)
        return subscription

    async def _flush(self, subscription: Subscription) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateRecordError(
                "subscription",
                f"user_id={subscription.user_id}, is_child={subscription.is_child}",
            ) from e
