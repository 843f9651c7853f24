"""Membership domain use cases"""
from .create_pending_subscription import CreatePendingSubscription
from .activate_subscription import ActivateSubscription
from .update_subscription_status import UpdateSubscriptionStatus
from .get_available_products import GetAvailableProducts, CATALOG_CACHE_KEY
from .get_user_subscriptions import GetUserSubscriptions
from .render_membership_card import RenderMembershipCard
from .expire_membership_cards import ExpireMembershipCards
from .dtos import (
    CreateSubscriptionCommandDTO,
    ActivateSubscriptionCommandDTO,
    UpdateStatusCommandDTO,
    RenderCardCommandDTO,
    MembershipCardDTO,
    SubscriptionResponseDTO,
    ActivationResponseDTO,
    UserSubscriptionsResponseDTO,
    PricingDTO,
    ProductDTO,
    CycleDTO,
    CatalogResponseDTO,
    CardDocumentDTO,
    ExpireCardsResponseDTO,
)

__all__ = [
    "CreatePendingSubscription",
    "ActivateSubscription",
    "UpdateSubscriptionStatus",
    "GetAvailableProducts",
    "CATALOG_CACHE_KEY",
    "GetUserSubscriptions",
    "RenderMembershipCard",
    "ExpireMembershipCards",
    "CreateSubscriptionCommandDTO",
    "ActivateSubscriptionCommandDTO",
    "UpdateStatusCommandDTO",
    "RenderCardCommandDTO",
    "MembershipCardDTO",
    "SubscriptionResponseDTO",
    "ActivationResponseDTO",
    "UserSubscriptionsResponseDTO",
    "PricingDTO",
    "ProductDTO",
    "CycleDTO",
    "CatalogResponseDTO",
    "CardDocumentDTO",
    "ExpireCardsResponseDTO",
]
