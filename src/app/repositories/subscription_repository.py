"""Subscription Repository Interface

Defines the contract for subscription persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from src.domain.subscription import Subscription


class SubscriptionRepository(ABC):
    """
    Repository interface for Subscription persistence

    The one-active-per-(user, is_child) rule is backed by a partial unique
    index; writes that break it raise DuplicateRecordError.
    """

    @abstractmethod
    async def get_by_id(self, subscription_id: int, for_update: bool = False) -> Optional[Subscription]:
        """
        Retrieve subscription by ID

        Args:
            subscription_id: Subscription ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_active_for_user(
        self, user_id: str, is_child: bool, for_update: bool = False
    ) -> Optional[Subscription]:
        """
        Retrieve the active subscription of a user for one category

        Args:
            user_id: User identifier
            is_child: Child (True) or adult (False) category
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Active Subscription if any, None otherwise
        """
        pass

    @abstractmethod
    async def list_active_for_user(self, user_id: str) -> List[Subscription]:
        """
        Retrieve all active subscriptions of a user (adult and child)

        Args:
            user_id: User identifier

        Returns:
            List of active subscriptions
        """
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> List[Subscription]:
        """
        Retrieve every subscription of a user, newest first

        Args:
            user_id: User identifier

        Returns:
            List of subscriptions
        """
        pass

    @abstractmethod
    async def has_activated_before(self, user_id: str, is_child: bool, exclude_id: int) -> bool:
        """
        Check whether the user already had an activated subscription

        Used to choose between purchase and renewal pricing.

        Args:
            user_id: User identifier
            is_child: Category to look at
            exclude_id: Subscription to ignore (the one being paid for)

        Returns:
            True if an active, paused or cancelled subscription exists
        """
        pass

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription

        Args:
            subscription: Subscription entity to persist

        Returns:
            Created Subscription with generated ID
        """
        pass

    @abstractmethod
    async def update(self, subscription: Subscription) -> Subscription:
        """
        Update an existing subscription

        Args:
            subscription: Subscription entity with updated values

        Returns:
            Updated Subscription

        Raises:
            DuplicateRecordError: If the update would create a second active
                subscription for the same user and category
        """
        pass
