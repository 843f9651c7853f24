"""GetAvailableProducts Use Case

Membership catalog: active products with their pricing and the billing cycles.
"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.membership_catalog_repository import MembershipCatalogRepository
from src.app.services.cache_service import CacheService
from .dtos import CatalogResponseDTO, ProductDTO, PricingDTO, CycleDTO

logger = logging.getLogger(__name__)

CATALOG_CACHE_KEY = "catalog:products"
DEFAULT_CATALOG_TTL_SECONDS = 300


class GetAvailableProducts:
    """
    Use Case: List purchasable membership products

    Business Rules:
    1. Only active products and active pricing rows are listed
    2. Cycles are ordered by months
    3. The catalog is cached for ttl_seconds; a cache failure falls back to the database
    """

    def __init__(
        self,
        catalog_repo: MembershipCatalogRepository,
        cache: CacheService,
        ttl_seconds: int = DEFAULT_CATALOG_TTL_SECONDS,
    ):
        self.catalog_repo = catalog_repo
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def execute(self) -> Result[CatalogResponseDTO]:
        try:
            cached = await self._read_cache()
            if cached is not None:
                response = CatalogResponseDTO.model_validate(cached)
                response.cached = True
                return Return.ok(response)

            products = await self.catalog_repo.list_active_products()
            pricing_rows = await self.catalog_repo.list_active_pricing([p.id for p in products])
            cycles = await self.catalog_repo.list_active_cycles()

            pricing_by_product = {}
            for row in sorted(pricing_rows, key=lambda r: r.cycle_months):
                pricing_by_product.setdefault(row.product_id, []).append(
                    PricingDTO(
                        cycle_months=row.cycle_months,
                        purchase_price_cfa=row.purchase_price_cfa,
                        renewal_price_cfa=row.renewal_price_cfa,
                        fee_cfa=row.fee_cfa,
                    )
                )

            response = CatalogResponseDTO(
                products=[
                    ProductDTO(
                        id=product.id,
                        kind=product.kind.value,
                        adult_tier=product.adult_tier.value if product.adult_tier else None,
                        name=product.name,
                        features=list(product.features or []),
                        pricing=pricing_by_product.get(product.id, []),
                    )
                    for product in products
                ],
                cycles=[
                    CycleDTO(months=cycle.months, label=cycle.label)
                    for cycle in sorted(cycles, key=lambda c: c.months)
                ],
            )

            await self._write_cache(response)
            return Return.ok(response)

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_PRODUCTS_FAILED",
                    message="Impossible de charger les produits",
                    reason=str(e),
                )
            )

    async def _read_cache(self):
        try:
            return await self.cache.get(CATALOG_CACHE_KEY)
        except Exception as e:
            logger.warning(f"Catalog cache read failed: {e}")
            return None

    async def _write_cache(self, response: CatalogResponseDTO) -> None:
        try:
            await self.cache.set(
                CATALOG_CACHE_KEY,
                response.model_dump(mode="json", exclude={"cached"}),
                self.ttl_seconds,
            )
        except Exception as e:
            logger.warning(f"Catalog cache write failed: {e}")
