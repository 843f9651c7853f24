"""Secours Transaction Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Tuple
from src.domain.secours_transaction import SecoursTransaction


class SecoursTransactionRepository(ABC):
    """Repository interface for SecoursTransaction persistence"""

    @abstractmethod
    async def get_by_id(self, transaction_id: int, for_update: bool = False) -> Optional[SecoursTransaction]:
        """
        Retrieve a token transaction by ID

        Args:
            transaction_id: Transaction ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            SecoursTransaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def sum_purchased_tokens(
        self, subscription_id: int, period_start: datetime, period_end: datetime
    ) -> int:
        """
        Total tokens bought in a period, counting pending and completed purchases

        Args:
            subscription_id: Token subscription ID
            period_start: Inclusive start
            period_end: Exclusive end

        Returns:
            Sum of token_amount (0 when none)
        """
        pass

    @abstractmethod
    async def list_by_subscription(
        self, subscription_id: int, limit: int = 20, offset: int = 0
    ) -> Tuple[List[SecoursTransaction], int]:
        """
        Retrieve transactions of a token subscription with pagination

        Args:
            subscription_id: Token subscription ID
            limit: Maximum number of transactions to return
            offset: Number of transactions to skip

        Returns:
            Tuple of (transactions newest first, total count)
        """
        pass

    @abstractmethod
    async def create(self, transaction: SecoursTransaction) -> SecoursTransaction:
        """Create a new token transaction"""
        pass

    @abstractmethod
    async def update(self, transaction: SecoursTransaction) -> SecoursTransaction:
        """Update an existing token transaction"""
        pass
