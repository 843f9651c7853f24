"""Membership Card Repository Interface

Defines the contract for membership card persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from src.domain.membership_card import MembershipCard


class MembershipCardRepository(ABC):
    """
    Repository interface for MembershipCard persistence

    subscription_id is unique: a second card for the same subscription
    raises DuplicateRecordError.
    """

    @abstractmethod
    async def get_by_subscription_id(self, subscription_id: int) -> Optional[MembershipCard]:
        """
        Retrieve the card issued for a subscription

        Args:
            subscription_id: Subscription ID

        Returns:
            MembershipCard if issued, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_identifier(self, card_identifier: str) -> Optional[MembershipCard]:
        """
        Retrieve a card by its printed identifier

        Args:
            card_identifier: Card identifier (CARD-...)

        Returns:
            MembershipCard if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_by_subscription_ids(self, subscription_ids: List[int]) -> List[MembershipCard]:
        """
        Retrieve the cards of several subscriptions

        Args:
            subscription_ids: Subscription IDs

        Returns:
            Cards found (subscriptions without a card are skipped)
        """
        pass

    @abstractmethod
    async def list_expired_active(self, now: datetime, limit: int = 500) -> List[MembershipCard]:
        """
        Retrieve active cards whose expiry date has passed

        Args:
            now: Reference time
            limit: Maximum number of cards to return

        Returns:
            List of cards to expire
        """
        pass

    @abstractmethod
    async def create(self, card: MembershipCard) -> MembershipCard:
        """
        Create a new card

        Args:
            card: MembershipCard entity to persist

        Returns:
            Created MembershipCard with generated ID

        Raises:
            DuplicateRecordError: If the subscription already has a card or
                the identifier collides
        """
        pass

    @abstractmethod
    async def update(self, card: MembershipCard) -> MembershipCard:
        """
        Update an existing card

        Args:
            card: MembershipCard entity with updated values

        Returns:
            Updated MembershipCard
        """
        pass
