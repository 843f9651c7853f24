"""SQLAlchemy implementation of MembershipCardRepository"""

from datetime import datetime
from typing import Optional, List
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.errors import DuplicateRecordError
from src.app.repositories.membership_card_repository import MembershipCardRepository
from src.domain.membership_card import MembershipCard, CardStatus


class SqlAlchemyMembershipCardRepository(MembershipCardRepository):
    """
    SQLAlchemy implementation of MembershipCardRepository

    The unique constraint on subscription_id is the last line against a
    second card being issued for the same subscription.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_subscription_id(self, subscription_id: int) -> Optional[MembershipCard]:
        stmt = select(MembershipCard).where(MembershipCard.subscription_id == subscription_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_identifier(self, card_identifier: str) -> Optional[MembershipCard]:
        stmt = select(MembershipCard).where(MembershipCard.card_identifier == card_identifier)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_subscription_ids(self, subscription_ids: List[int]) -> List[MembershipCard]:
        if not subscription_ids:
            return []
        stmt = select(MembershipCard).where(MembershipCard.subscription_id.in_(subscription_ids))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_expired_active(self, now: datetime, limit: int = 500) -> List[MembershipCard]:
        stmt = (
            select(MembershipCard)
            .where(
                MembershipCard.status == CardStatus.ACTIVE,
                MembershipCard.card_expiry_date < now,
            )
            .order_by(MembershipCard.card_expiry_date)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, card: MembershipCard) -> MembershipCard:
        """
        Create a new card

        Args:
            card: MembershipCard entity to persist

        Returns:
            Created MembershipCard with generated ID

        Raises:
            DuplicateRecordError: If the subscription already has a card
        """
        self.session.add(card)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateRecordError(
                "membership_card", f"subscription_id={card.subscription_id}"
            ) from e
        await self.session.refresh(card)
        return card

    async def update(self, card: MembershipCard) -> MembershipCard:
        card.updated_at = datetime.utcnow()
        self.session.add(card)
        await self.session.flush()
        await self.session.refresh(card)
        return card
