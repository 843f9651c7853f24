"""SQLAlchemy implementation of MembershipCatalogRepository"""

from typing import Optional, List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.membership_catalog_repository import MembershipCatalogRepository
from src.domain.membership_product import MembershipProduct, MembershipPricing, MembershipCycle


class SqlAlchemyMembershipCatalogRepository(MembershipCatalogRepository):
    """Read-only access to membership reference data"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_product(self, product_id: int) -> Optional[MembershipProduct]:
        stmt = select(MembershipProduct).where(MembershipProduct.id == product_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active_products(self) -> List[MembershipProduct]:
        stmt = (
            select(MembershipProduct)
            .where(MembershipProduct.is_active == True)  # noqa: E712
            .order_by(MembershipProduct.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_active_pricing(self, product_ids: List[int]) -> List[MembershipPricing]:
        if not product_ids:
            return []
        stmt = (
            select(MembershipPricing)
            .where(
                MembershipPricing.product_id.in_(product_ids),
                MembershipPricing.active == True,  # noqa: E712
            )
            .order_by(MembershipPricing.product_id, MembershipPricing.cycle_months)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_pricing(self, product_id: int, cycle_months: int) -> Optional[MembershipPricing]:
        stmt = select(MembershipPricing).where(
            MembershipPricing.product_id == product_id,
            MembershipPricing.cycle_months == cycle_months,
            MembershipPricing.active == True,  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active_cycles(self) -> List[MembershipCycle]:
        stmt = (
            select(MembershipCycle)
            .where(MembershipCycle.is_active == True)  # noqa: E712
            .order_by(MembershipCycle.months)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
