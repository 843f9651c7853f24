"""ActivateSubscription Use Case

Turns a pending subscription into an active one after payment confirmation and
issues its membership card in the same transaction. Only payment
reconciliation calls it; there is no HTTP route for it.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.errors import DuplicateRecordError
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.membership_card_repository import MembershipCardRepository
from src.app.repositories.membership_catalog_repository import MembershipCatalogRepository
from src.domain.membership_card import (
    MembershipCard,
    CardStatus,
    QR_PAYLOAD_VERSION,
    generate_card_identifier,
    generate_qr_code,
    build_qr_payload,
)
from src.domain.subscription import (
    Subscription,
    SubscriptionStatus,
    DEFAULT_CYCLE_MONTHS,
    add_months,
)
from .dtos import ActivateSubscriptionCommandDTO, ActivationResponseDTO
from .mappers import to_card_dto, to_subscription_dto

logger = logging.getLogger(__name__)


class ActivateSubscription:
    """
    Use Case: Activate a paid subscription and issue its card

    Business Rules:
    1. Only pending subscriptions can be activated
    2. Idempotent: an active subscription with a card returns that card (already_active=True)
    3. end_date = now + cycle_months (default 12), day clamped to the month's end
    4. Card expiry equals the new end_date
    5. Subscription update and card insert commit together or not at all
    6. At most one active subscription per (user, category), enforced by the
       partial unique index; a concurrent loser re-reads the winner's card

    Flow:
    1. Load subscription with lock (SELECT FOR UPDATE)
    2. Handle already-active replay
    3. Check product and category uniqueness
    4. Update subscription (status, end_date, lifecycle)
    5. Create membership card
    6. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        card_repo: MembershipCardRepository,
        catalog_repo: MembershipCatalogRepository,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.card_repo = card_repo
        self.catalog_repo = catalog_repo
        self.clock = clock

    async def execute(self, command: ActivateSubscriptionCommandDTO) -> Result[ActivationResponseDTO]:
        """
        Execute subscription activation

        Args:
            command: ActivateSubscriptionCommandDTO with subscription_id and payment_id

        Returns:
            Result[ActivationResponseDTO]: Activated subscription and its card, or error
        """
        try:
            # Step 1: Lock the subscription row
            subscription = await self.subscription_repo.get_by_id(
                command.subscription_id, for_update=True
            )
            if not subscription:
                return Return.err(
                    Error(
                        code="SUBSCRIPTION_NOT_FOUND",
                        message="Abonnement non trouvé",
                        reason=f"Subscription {command.subscription_id} does not exist",
                    )
                )

            # Step 2: Replay of an earlier activation
            if subscription.status == SubscriptionStatus.ACTIVE:
                card = await self.card_repo.get_by_subscription_id(subscription.id)
                if card:
                    logger.info(f"Subscription {subscription.id} already active, returning card {card.card_identifier}")
                    return Return.ok(self._to_response_dto(subscription, card, already_active=True))
                return Return.err(
                    Error(
                        code="ALREADY_ACTIVE",
                        message="Cet abonnement est déjà actif",
                        reason=f"Subscription {subscription.id} is active but has no card",
                    )
                )

            if subscription.status != SubscriptionStatus.PENDING:
                return Return.err(
                    Error(
                        code="INVALID_TRANSITION",
                        message="Seul un abonnement en attente peut être activé",
                        reason=f"Cannot activate subscription in status {subscription.status.value}",
                    )
                )

            # Step 3: Product and category uniqueness
            product = await self.catalog_repo.get_product(subscription.product_id)
            if not product:
                return Return.err(
                    Error(
                        code="PRODUCT_NOT_FOUND",
                        message="Produit non trouvé",
                        reason=f"Product {subscription.product_id} no longer exists",
                    )
                )

            active = await self.subscription_repo.get_active_for_user(
                subscription.user_id, subscription.is_child, for_update=True
            )
            if active and active.id != subscription.id:
                return self._duplicate_error(subscription)

            # Step 4: Activate subscription
            now = self.clock()
            lifecycle = subscription.get_lifecycle()
            cycle_months = lifecycle.cycle_months or DEFAULT_CYCLE_MONTHS
            end_date = add_months(now, cycle_months)

            lifecycle.payment_id = command.payment_id
            lifecycle.activated_at = now
            lifecycle.status_updated_at = now
            if not lifecycle.product_name:
                lifecycle.product_name = product.name

            subscription.status = SubscriptionStatus.ACTIVE
            subscription.end_date = end_date
            subscription.updated_at = now
            subscription.set_lifecycle(lifecycle)
            subscription = await self.subscription_repo.update(subscription)

            # Step 5: Issue card
            card_identifier = generate_card_identifier(now)
            card = MembershipCard(
                subscription_id=subscription.id,
                user_id=subscription.user_id,
                card_identifier=card_identifier,
                qr_code=generate_qr_code(now),
                qr_data=build_qr_payload(card_identifier, subscription.id, subscription.user_id, end_date),
                qr_version=QR_PAYLOAD_VERSION,
                holder_full_name=self._holder_name(subscription, lifecycle.holder_full_name),
                holder_city=lifecycle.holder_city,
                holder_neighborhood=lifecycle.holder_neighborhood,
                status=CardStatus.ACTIVE,
                issued_at=now,
                card_expiry_date=end_date,
                updated_at=now,
            )
            card = await self.card_repo.create(card)

            # Step 6: Commit both writes
            await self.uow.commit()

            logger.info(
                f"Activated subscription {subscription.id} for user {subscription.user_id}, "
                f"card {card.card_identifier} valid until {end_date.isoformat()}"
            )
            return Return.ok(self._to_response_dto(subscription, card))

        except DuplicateRecordError as e:
            await self.uow.rollback()
            return await self._resolve_concurrent_activation(command.subscription_id, e)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="ACTIVATE_SUBSCRIPTION_FAILED",
                    message="Impossible d'activer l'abonnement",
                    reason=str(e),
                )
            )

    async def _resolve_concurrent_activation(
        self, subscription_id: int, error: DuplicateRecordError
    ) -> Result[ActivationResponseDTO]:
        """Another transaction won the race; return its card when it activated this subscription"""
        logger.warning(f"Concurrent activation of subscription {subscription_id}: {error}")
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id)
            card = await self.card_repo.get_by_subscription_id(subscription_id)
            if subscription and card and subscription.status == SubscriptionStatus.ACTIVE:
                return Return.ok(self._to_response_dto(subscription, card, already_active=True))
            if subscription:
                return self._duplicate_error(subscription)
        except Exception as e:
            return Return.err(
                Error(
                    code="ACTIVATE_SUBSCRIPTION_FAILED",
                    message="Impossible d'activer l'abonnement",
                    reason=str(e),
                )
            )
        return Return.err(
            Error(
                code="SUBSCRIPTION_NOT_FOUND",
                message="Abonnement non trouvé",
                reason=f"Subscription {subscription_id} does not exist",
            )
        )

    @staticmethod
    def _duplicate_error(subscription: Subscription) -> Result:
        category = "enfant" if subscription.is_child else "adulte"
        return Return.err(
            Error(
                code="DUPLICATE_ACTIVE_SUBSCRIPTION",
                message=f"Vous avez déjà un abonnement {category} actif",
                reason=f"User {subscription.user_id} already has an active subscription in this category",
            )
        )

    @staticmethod
    def _holder_name(subscription: Subscription, holder_full_name: Optional[str]) -> str:
        if subscription.is_child and subscription.child_name:
            return subscription.child_name
        return holder_full_name or subscription.user_id

    def _to_response_dto(
        self, subscription: Subscription, card: MembershipCard, already_active: bool = False
    ) -> ActivationResponseDTO:
        return ActivationResponseDTO(
            subscription=to_subscription_dto(subscription, card),
            card=to_card_dto(card),
            already_active=already_active,
        )
