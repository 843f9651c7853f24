"""RenderMembershipCard Use Case

Produces the printable PDF of a subscription's membership card.
"""

from libs.result import Result, Return, Error
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.membership_card_repository import MembershipCardRepository
from src.app.services.card_document_service import CardDocumentService
from .dtos import RenderCardCommandDTO, CardDocumentDTO


class RenderMembershipCard:
    """
    Use Case: Render a membership card as PDF

    Business Rules:
    1. Only the subscription owner can download the card
    2. A card exists only after activation
    """

    def __init__(
        self,
        subscription_repo: SubscriptionRepository,
        card_repo: MembershipCardRepository,
        document_service: CardDocumentService,
        organization_name: str = "Elverra Global",
    ):
        self.subscription_repo = subscription_repo
        self.card_repo = card_repo
        self.document_service = document_service
        self.organization_name = organization_name

    async def execute(self, command: RenderCardCommandDTO) -> Result[CardDocumentDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(command.subscription_id)
            if not subscription:
                return Return.err(
                    Error(
                        code="SUBSCRIPTION_NOT_FOUND",
                        message="Abonnement non trouvé",
                        reason=f"Subscription {command.subscription_id} does not exist",
                    )
                )

            if subscription.user_id != command.requesting_user_id:
                return Return.err(
                    Error(
                        code="UNAUTHORIZED",
                        message="Non autorisé à consulter cette carte",
                        reason=f"User {command.requesting_user_id} does not own subscription {subscription.id}",
                    )
                )

            card = await self.card_repo.get_by_subscription_id(subscription.id)
            if not card:
                return Return.err(
                    Error(
                        code="CARD_NOT_FOUND",
                        message="Aucune carte n'a encore été émise pour cet abonnement",
                        reason=f"Subscription {subscription.id} has no card (status {subscription.status.value})",
                    )
                )

            content = self.document_service.render_card(
                card, subscription, organization_name=self.organization_name
            )
            return Return.ok(
                CardDocumentDTO(filename=f"{card.card_identifier}.pdf", content=content)
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="RENDER_CARD_FAILED",
                    message="Impossible de générer la carte",
                    reason=str(e),
                )
            )
