"""Secours Subscription Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.secours_subscription import SecoursSubscription


class SecoursSubscriptionRepository(ABC):
    """
    Repository interface for SecoursSubscription persistence

    Balance changes lock the row first (SELECT FOR UPDATE).
    """

    @abstractmethod
    async def get_by_id(self, subscription_id: int, for_update: bool = False) -> Optional[SecoursSubscription]:
        """
        Retrieve a token subscription by ID

        Args:
            subscription_id: Token subscription ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            SecoursSubscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, subscription: SecoursSubscription) -> SecoursSubscription:
        """Create a new token subscription"""
        pass

    @abstractmethod
    async def update(self, subscription: SecoursSubscription) -> SecoursSubscription:
        """Update an existing token subscription"""
        pass
