"""ExpireMembershipCards Use Case

Marks active cards whose expiry date has passed as expired.
"""

import logging
from datetime import datetime
from typing import Callable
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.membership_card_repository import MembershipCardRepository
from src.domain.membership_card import CardStatus
from .dtos import ExpireCardsResponseDTO

logger = logging.getLogger(__name__)


class ExpireMembershipCards:
    """
    Use Case: Expire overdue membership cards

    Business Rules:
    1. Only active cards with card_expiry_date < now are touched
    2. The subscription itself is left unchanged; renewal goes through a new payment
    3. At most batch_size cards per run
    """

    def __init__(
        self,
        uow: UnitOfWork,
        card_repo: MembershipCardRepository,
        clock: Callable[[], datetime] = datetime.utcnow,
        batch_size: int = 500,
    ):
        self.uow = uow
        self.card_repo = card_repo
        self.clock = clock
        self.batch_size = batch_size

    async def execute(self) -> Result[ExpireCardsResponseDTO]:
        try:
            now = self.clock()
            cards = await self.card_repo.list_expired_active(now, limit=self.batch_size)

            identifiers = []
            for card in cards:
                card.status = CardStatus.EXPIRED
                await self.card_repo.update(card)
                identifiers.append(card.card_identifier)

            await self.uow.commit()

            if identifiers:
                logger.info(f"Expired {len(identifiers)} membership cards")
            return Return.ok(
                ExpireCardsResponseDTO(expired_count=len(identifiers), card_identifiers=identifiers)
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="EXPIRE_CARDS_FAILED",
                    message="Failed to expire membership cards",
                    reason=str(e),
                )
            )
