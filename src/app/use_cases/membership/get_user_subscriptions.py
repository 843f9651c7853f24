"""GetUserSubscriptions Use Case

Lists a user's subscriptions together with their cards.
"""

from libs.result import Result, Return, Error
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.membership_card_repository import MembershipCardRepository
from .dtos import UserSubscriptionsResponseDTO
from .mappers import to_subscription_dto


class GetUserSubscriptions:
    """
    Use Case: Retrieve all subscriptions of a user, newest first

    Business Rules:
    1. Every status is included (pending, active, paused, cancelled)
    2. Each subscription carries its card when one was issued
    """

    def __init__(
        self,
        subscription_repo: SubscriptionRepository,
        card_repo: MembershipCardRepository,
    ):
        self.subscription_repo = subscription_repo
        self.card_repo = card_repo

    async def execute(self, user_id: str) -> Result[UserSubscriptionsResponseDTO]:
        """
        Args:
            user_id: User whose subscriptions to list

        Returns:
            Result[UserSubscriptionsResponseDTO]
        """
        if not user_id:
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message="ID utilisateur manquant",
                    reason="user_id is required",
                )
            )

        try:
            subscriptions = await self.subscription_repo.list_by_user(user_id)
            cards = await self.card_repo.list_by_subscription_ids([s.id for s in subscriptions])
            cards_by_subscription = {card.subscription_id: card for card in cards}

            return Return.ok(
                UserSubscriptionsResponseDTO(
                    user_id=user_id,
                    subscriptions=[
                        to_subscription_dto(s, cards_by_subscription.get(s.id))
                        for s in subscriptions
                    ],
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_SUBSCRIPTIONS_FAILED",
                    message="Impossible de charger les abonnements",
                    reason=str(e),
                )
            )
