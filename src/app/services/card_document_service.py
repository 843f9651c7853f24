"""Card Document Service Interface

Defines the contract for rendering printable membership cards.
"""

from abc import ABC, abstractmethod
from src.domain.membership_card import MembershipCard
from src.domain.subscription import Subscription


class CardDocumentService(ABC):
    """
    Service interface for membership card documents

    Provides PDF rendering of a card and its QR payload.
    """

    @abstractmethod
    def render_card(
        self,
        card: MembershipCard,
        subscription: Subscription,
        organization_name: str = "Elverra Global",
    ) -> bytes:
        """
        Render a printable membership card

        Args:
            card: Issued MembershipCard
            subscription: Subscription the card belongs to
            organization_name: Name printed in the card header

        Returns:
            PDF document as bytes
        """
        pass
