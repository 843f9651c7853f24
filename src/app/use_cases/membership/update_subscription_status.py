"""UpdateSubscriptionStatus Use Case

Pause, resume and cancel transitions, keeping the membership card in step.
"""

from datetime import datetime
from typing import Callable, Dict, Set
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.errors import DuplicateRecordError
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.membership_card_repository import MembershipCardRepository
from src.domain.membership_card import CardStatus
from src.domain.subscription import SubscriptionStatus
from .dtos import UpdateStatusCommandDTO, SubscriptionResponseDTO
from .mappers import to_subscription_dto

ALLOWED_TRANSITIONS: Dict[SubscriptionStatus, Set[SubscriptionStatus]] = {
    SubscriptionStatus.ACTIVE: {SubscriptionStatus.PAUSED, SubscriptionStatus.CANCELLED},
    SubscriptionStatus.PAUSED: {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED},
    SubscriptionStatus.PENDING: set(),
    SubscriptionStatus.CANCELLED: set(),
}


class UpdateSubscriptionStatus:
    """
    Use Case: Change the status of an existing subscription

    Business Rules:
    1. Only the owner may change the status (when requesting_user_id is given)
    2. Same status is a no-op success
    3. active -> paused: paused_at recorded, card inactive
    4. paused -> active: remaining time (end_date - paused_at) is restored from now,
       card reactivated with the new expiry
    5. active/paused -> cancelled: end_date = now, card inactive
    6. Nothing leaves cancelled; pending only leaves through ActivateSubscription
    7. status_updated_at is always recorded

    Flow:
    1. Load subscription with lock
    2. Authorization and transition checks
    3. Apply transition to subscription and card
    4. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        card_repo: MembershipCardRepository,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.card_repo = card_repo
        self.clock = clock

    async def execute(self, command: UpdateStatusCommandDTO) -> Result[SubscriptionResponseDTO]:
        """
        Execute status update

        Args:
            command: UpdateStatusCommandDTO

        Returns:
            Result[SubscriptionResponseDTO]: Updated subscription or error
        """
        try:
            # Step 1: Lock subscription
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

            # Step 2: Authorization and transition
            if command.requesting_user_id and command.requesting_user_id != subscription.user_id:
                return Return.err(
                    Error(
                        code="UNAUTHORIZED",
                        message="Non autorisé à modifier cet abonnement",
                        reason=f"User {command.requesting_user_id} does not own subscription {subscription.id}",
                    )
                )

            card = await self.card_repo.get_by_subscription_id(subscription.id)
            current = subscription.status
            target = command.new_status

            if current == target:
                return Return.ok(to_subscription_dto(subscription, card))

            if target not in ALLOWED_TRANSITIONS[current]:
                return Return.err(
                    Error(
                        code="INVALID_TRANSITION",
                        message="Changement de statut non autorisé",
                        reason=f"Transition {current.value} -> {target.value} is not allowed",
                    )
                )

            # Step 3: Apply transition
            now = self.clock()
            lifecycle = subscription.get_lifecycle()

            if target == SubscriptionStatus.PAUSED:
                lifecycle.paused_at = now
                card_status = CardStatus.INACTIVE

            elif target == SubscriptionStatus.ACTIVE:
                paused_at = lifecycle.paused_at or now
                if subscription.end_date:
                    remaining = subscription.end_date - paused_at
                    if remaining.total_seconds() > 0:
                        subscription.end_date = now + remaining
                lifecycle.reactivated_at = now
                card_status = CardStatus.ACTIVE

            else:
                subscription.end_date = now
                lifecycle.cancelled_at = now
                card_status = CardStatus.INACTIVE

            lifecycle.status_updated_at = now
            subscription.status = target
            subscription.updated_at = now
            subscription.set_lifecycle(lifecycle)
            subscription = await self.subscription_repo.update(subscription)

            if card:
                card.status = card_status
                if target == SubscriptionStatus.ACTIVE and subscription.end_date:
                    card.card_expiry_date = subscription.end_date
                card = await self.card_repo.update(card)

            # Step 4: Commit
            await self.uow.commit()

            return Return.ok(to_subscription_dto(subscription, card))

        except DuplicateRecordError:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="DUPLICATE_ACTIVE_SUBSCRIPTION",
                    message="Un autre abonnement de cette catégorie est déjà actif",
                    reason=f"Cannot resume subscription {command.subscription_id} while another one is active",
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="UPDATE_STATUS_FAILED",
                    message="Impossible de modifier le statut de l'abonnement",
                    reason=str(e),
                )
            )
