"""Payment Repository Interface

Defines the contract for gateway payment persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from src.domain.payment import Payment


class PaymentRepository(ABC):
    """Repository interface for Payment persistence"""

    @abstractmethod
    async def get_by_reference(self, reference: str, for_update: bool = False) -> Optional[Payment]:
        """
        Retrieve a payment by gateway order reference

        Args:
            reference: Order reference sent to the gateway
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Payment if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_pending(self, created_before: datetime, limit: int = 100) -> List[Payment]:
        """
        Retrieve pending payments created before a point in time

        Args:
            created_before: Only payments older than this
            limit: Maximum number of payments to return

        Returns:
            Pending payments, oldest first
        """
        pass

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        """
        Create a new payment

        Args:
            payment: Payment entity to persist

        Returns:
            Created Payment with generated ID

        Raises:
            DuplicateRecordError: If the reference already exists
        """
        pass

    @abstractmethod
    async def update(self, payment: Payment) -> Payment:
        """
        Update an existing payment

        Args:
            payment: Payment entity with updated values

        Returns:
            Updated Payment
        """
        pass
