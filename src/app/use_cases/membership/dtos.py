"""Data Transfer Objects for Membership Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import date, datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from src.domain.subscription import SubscriptionStatus


class CreateSubscriptionCommandDTO(BaseModel):
    """
    Command DTO for creating a pending subscription

    Used as input to CreatePendingSubscription use case.
    """

    user_id: str = Field(
        ...,
        description="Subscribing user ID"
    )

    product_id: Optional[int] = Field(
        default=None,
        description="Membership product ID"
    )

    cycle_months: int = Field(
        default=1,
        description="Billing cycle length in months (1, 3, 6 or 12)"
    )

    is_child: bool = Field(
        default=False,
        description="Child membership (separate from the adult category)"
    )

    holder_full_name: str = Field(
        default="",
        description="Name printed on the card"
    )

    holder_city: Optional[str] = None
    holder_neighborhood: Optional[str] = None

    child_name: Optional[str] = Field(
        default=None,
        description="Child's name (child memberships only)"
    )

    child_birthdate: Optional[date] = Field(
        default=None,
        description="Child's birthdate (child memberships only)"
    )

    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Free-form caller metadata"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_abc123",
                "product_id": 2,
                "cycle_months": 3,
                "is_child": False,
                "holder_full_name": "Awa Traoré",
                "holder_city": "Bamako",
                "holder_neighborhood": "Hamdallaye",
            }
        }


class ActivateSubscriptionCommandDTO(BaseModel):
    """Command DTO for activating a subscription after payment confirmation"""

    subscription_id: int = Field(..., description="Subscription to activate")
    payment_id: str = Field(..., description="Confirmed payment reference")


class UpdateStatusCommandDTO(BaseModel):
    """Command DTO for pausing, resuming or cancelling a subscription"""

    subscription_id: int = Field(..., description="Subscription to update")
    new_status: SubscriptionStatus = Field(..., description="Target status")
    requesting_user_id: Optional[str] = Field(
        default=None,
        description="Caller; must own the subscription when given"
    )


class RenderCardCommandDTO(BaseModel):
    """Command DTO for rendering a membership card PDF"""

    subscription_id: int
    requesting_user_id: str


class MembershipCardDTO(BaseModel):
    """Membership card as returned by the API"""

    id: int
    subscription_id: int
    user_id: str
    card_identifier: str
    qr_code: str
    qr_data: Dict[str, Any]
    holder_full_name: str
    holder_city: Optional[str] = None
    holder_neighborhood: Optional[str] = None
    status: str
    issued_at: datetime
    card_expiry_date: datetime


class SubscriptionResponseDTO(BaseModel):
    """
    Response DTO for a subscription

    Lifecycle metadata is flattened into named fields.
    """

    id: int
    user_id: str
    product_id: int
    status: str
    start_date: datetime
    end_date: Optional[datetime] = None
    is_recurring: bool
    is_child: bool
    child_name: Optional[str] = None
    child_birthdate: Optional[date] = None
    cycle_months: Optional[int] = None
    product_name: Optional[str] = None
    holder_full_name: Optional[str] = None
    payment_id: Optional[str] = None
    activated_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    reactivated_at: Optional[datetime] = None
    status_updated_at: Optional[datetime] = None
    created_at: datetime
    card: Optional[MembershipCardDTO] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": 12,
                "user_id": "user_abc123",
                "product_id": 2,
                "status": "pending",
                "start_date": "2024-01-01T10:00:00",
                "end_date": None,
                "is_recurring": True,
                "is_child": False,
                "cycle_months": 3,
                "product_name": "Premium",
                "holder_full_name": "Awa Traoré",
                "created_at": "2024-01-01T10:00:00",
                "card": None,
            }
        }


class ActivationResponseDTO(BaseModel):
    """Response DTO for ActivateSubscription"""

    subscription: SubscriptionResponseDTO
    card: MembershipCardDTO
    already_active: bool = Field(
        default=False,
        description="True when the subscription had already been activated (idempotent replay)"
    )


class UserSubscriptionsResponseDTO(BaseModel):
    """A user's subscriptions, newest first"""

    user_id: str
    subscriptions: List[SubscriptionResponseDTO]


class PricingDTO(BaseModel):
    cycle_months: int
    purchase_price_cfa: int
    renewal_price_cfa: int
    fee_cfa: int


class ProductDTO(BaseModel):
    id: int
    kind: str
    adult_tier: Optional[str] = None
    name: str
    features: List[str] = Field(default_factory=list)
    pricing: List[PricingDTO] = Field(default_factory=list)


class CycleDTO(BaseModel):
    months: int
    label: str


class CatalogResponseDTO(BaseModel):
    """Response DTO for GetAvailableProducts"""

    products: List[ProductDTO]
    cycles: List[CycleDTO]
    cached: bool = Field(default=False, description="Served from cache")


class CardDocumentDTO(BaseModel):
    """Rendered membership card"""

    filename: str
    content: bytes


class ExpireCardsResponseDTO(BaseModel):
    """Result of one card expiry sweep"""

    expired_count: int
    card_identifiers: List[str] = Field(default_factory=list)
