"""Entity to DTO conversion shared by the membership use cases"""

from typing import Optional
from src.domain.membership_card import MembershipCard
from src.domain.subscription import Subscription
from .dtos import MembershipCardDTO, SubscriptionResponseDTO


def to_card_dto(card: MembershipCard) -> MembershipCardDTO:
    return MembershipCardDTO(
        id=card.id,
        subscription_id=card.subscription_id,
        user_id=card.user_id,
        card_identifier=card.card_identifier,
        qr_code=card.qr_code,
        qr_data=card.qr_data,
        holder_full_name=card.holder_full_name,
        holder_city=card.holder_city,
        holder_neighborhood=card.holder_neighborhood,
        status=card.status.value,
        issued_at=card.issued_at,
        card_expiry_date=card.card_expiry_date,
    )


def to_subscription_dto(
    subscription: Subscription, card: Optional[MembershipCard] = None
) -> SubscriptionResponseDTO:
    lifecycle = subscription.get_lifecycle()
    return SubscriptionResponseDTO(
        id=subscription.id,
        user_id=subscription.user_id,
        product_id=subscription.product_id,
        status=subscription.status.value,
        start_date=subscription.start_date,
        end_date=subscription.end_date,
        is_recurring=subscription.is_recurring,
        is_child=subscription.is_child,
        child_name=subscription.child_name,
        child_birthdate=subscription.child_birthdate,
        cycle_months=lifecycle.cycle_months,
        product_name=lifecycle.product_name,
        holder_full_name=lifecycle.holder_full_name,
        payment_id=lifecycle.payment_id,
        activated_at=lifecycle.activated_at,
        paused_at=lifecycle.paused_at,
        cancelled_at=lifecycle.cancelled_at,
        reactivated_at=lifecycle.reactivated_at,
        status_updated_at=lifecycle.status_updated_at,
        created_at=subscription.created_at,
        card=to_card_dto(card) if card else None,
    )
