"""CreatePendingSubscription Use Case

Records a membership purchase intent before payment. The subscription stays
pending until a confirmed payment activates it.
"""

from datetime import datetime
from typing import Callable
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.membership_catalog_repository import MembershipCatalogRepository
from src.domain.membership_product import ProductKind
from src.domain.subscription import Subscription, SubscriptionStatus, LifecycleMetadata
from .dtos import CreateSubscriptionCommandDTO, SubscriptionResponseDTO
from .mappers import to_subscription_dto


class CreatePendingSubscription:
    """
    Use Case: Create a pending membership subscription

    Business Rules:
    1. user_id, product_id and holder_full_name are required
    2. Product must exist and be active; a child product always yields a child subscription
    3. cycle_months must be one of the active billing cycles
    4. At most one active subscription per (user, category); adult and child are separate
    5. No card is issued here; end_date stays empty until activation
    6. Child fields are discarded for adult subscriptions

    Flow:
    1. Validate command
    2. Load product and check cycle
    3. Check for an active subscription in the same category (locked read)
    4. Insert pending subscription with lifecycle metadata
    5. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        catalog_repo: MembershipCatalogRepository,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.catalog_repo = catalog_repo
        self.clock = clock

    async def execute(self, command: CreateSubscriptionCommandDTO) -> Result[SubscriptionResponseDTO]:
        """
        Execute subscription creation

        Args:
            command: CreateSubscriptionCommandDTO

        Returns:
            Result[SubscriptionResponseDTO]: The pending subscription or error
        """
        try:
            # Step 1: Required fields
            if not command.user_id or not command.user_id.strip():
                return Return.err(
                    Error(
                        code="VALIDATION_ERROR",
                        message="ID utilisateur manquant",
                        reason="user_id is required",
                    )
                )
            if not command.product_id:
                return Return.err(
                    Error(
                        code="VALIDATION_ERROR",
                        message="Produit manquant",
                        reason="product_id is required",
                    )
                )
            if not command.holder_full_name or not command.holder_full_name.strip():
                return Return.err(
                    Error(
                        code="VALIDATION_ERROR",
                        message="Nom complet du titulaire manquant",
                        reason="holder_full_name is required",
                    )
                )

            # Step 2: Product and billing cycle
            product = await self.catalog_repo.get_product(command.product_id)
            if not product or not product.is_active:
                return Return.err(
                    Error(
                        code="PRODUCT_NOT_FOUND",
                        message="Le produit sélectionné est introuvable",
                        reason=f"Product {command.product_id} does not exist or is inactive",
                    )
                )

            cycles = await self.catalog_repo.list_active_cycles()
            allowed_months = {cycle.months for cycle in cycles}
            if command.cycle_months <= 0 or (allowed_months and command.cycle_months not in allowed_months):
                return Return.err(
                    Error(
                        code="VALIDATION_ERROR",
                        message="Durée d'abonnement invalide",
                        reason=f"cycle_months {command.cycle_months} is not an active billing cycle",
                    )
                )

            if command.is_child and product.kind != ProductKind.CHILD:
                return Return.err(
                    Error(
                        code="VALIDATION_ERROR",
                        message="Ce produit n'est pas une carte enfant",
                        reason=f"Product {product.id} is an adult product, is_child cannot be set",
                    )
                )
            is_child = product.kind == ProductKind.CHILD

            # Step 3: One active subscription per category
            active = await self.subscription_repo.get_active_for_user(
                command.user_id, is_child, for_update=True
            )
            if active:
                category = "enfant" if is_child else "adulte"
                return Return.err(
                    Error(
                        code="DUPLICATE_ACTIVE_SUBSCRIPTION",
                        message=f"Vous avez déjà un abonnement {category} actif",
                        reason=f"Subscription {active.id} is already active for user {command.user_id}",
                    )
                )

            # Step 4: Insert pending subscription
            now = self.clock()
            lifecycle = LifecycleMetadata(
                cycle_months=command.cycle_months,
                product_name=product.name,
                holder_full_name=command.holder_full_name.strip(),
                holder_city=command.holder_city,
                holder_neighborhood=command.holder_neighborhood,
                status_updated_at=now,
                extra=command.metadata or {},
            )
            subscription = Subscription(
                user_id=command.user_id,
                product_id=product.id,
                status=SubscriptionStatus.PENDING,
                start_date=now,
                end_date=None,
                is_recurring=True,
                is_child=is_child,
                child_name=command.child_name if is_child else None,
                child_birthdate=command.child_birthdate if is_child else None,
                created_at=now,
                updated_at=now,
            )
            subscription.set_lifecycle(lifecycle)

            created = await self.subscription_repo.create(subscription)

            # Step 5: Commit
            await self.uow.commit()

            return Return.ok(to_subscription_dto(created))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_SUBSCRIPTION_FAILED",
                    message="Impossible de créer l'abonnement",
                    reason=str(e),
                )
            )
