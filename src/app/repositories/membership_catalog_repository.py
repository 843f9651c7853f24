"""Membership Catalog Repository Interface

Read access to products, pricing and billing cycles.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from src.domain.membership_product import MembershipProduct, MembershipPricing, MembershipCycle


class MembershipCatalogRepository(ABC):
    """Repository interface for membership reference data"""

    @abstractmethod
    async def get_product(self, product_id: int) -> Optional[MembershipProduct]:
        """
        Retrieve a product by ID (active or not)

        Args:
            product_id: Product ID

        Returns:
            MembershipProduct if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_active_products(self) -> List[MembershipProduct]:
        """
        Retrieve all active products

        Returns:
            Active products ordered by ID
        """
        pass

    @abstractmethod
    async def list_active_pricing(self, product_ids: List[int]) -> List[MembershipPricing]:
        """
        Retrieve active pricing rows for the given products

        Args:
            product_ids: Product IDs

        Returns:
            Pricing rows ordered by product and cycle length
        """
        pass

    @abstractmethod
    async def get_pricing(self, product_id: int, cycle_months: int) -> Optional[MembershipPricing]:
        """
        Retrieve the active price of a product for a cycle

        Args:
            product_id: Product ID
            cycle_months: Billing cycle length

        Returns:
            MembershipPricing if offered, None otherwise
        """
        pass

    @abstractmethod
    async def list_active_cycles(self) -> List[MembershipCycle]:
        """
        Retrieve the billing cycles on offer

        Returns:
            Active cycles ordered by months
        """
        pass
