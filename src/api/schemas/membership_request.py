"""Request schemas for Membership API

Pydantic models for validating incoming HTTP requests.
"""

from datetime import date
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator
from src.domain.subscription import SubscriptionStatus

ALLOWED_CYCLES = (1, 3, 6, 12)


class CreateSubscriptionRequestSchema(BaseModel):
    """
    Request schema for starting a membership purchase

    Used for POST /memberships/subscriptions endpoint.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        description="Subscribing user ID (required, non-empty)"
    )

    product_id: int = Field(
        ...,
        gt=0,
        description="Membership product ID"
    )

    cycle_months: int = Field(
        default=1,
        description="Billing cycle in months: 1, 3, 6 or 12"
    )

    is_child: bool = Field(
        default=False,
        description="Child membership"
    )

    holder_full_name: str = Field(
        ...,
        min_length=1,
        description="Name printed on the membership card"
    )

    holder_city: Optional[str] = None
    holder_neighborhood: Optional[str] = None
    child_name: Optional[str] = None
    child_birthdate: Optional[date] = None

    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Optional caller metadata"
    )

    @field_validator('cycle_months')
    @classmethod
    def validate_cycle(cls, v):
        """Only the published billing cycles are accepted"""
        if v not in ALLOWED_CYCLES:
            raise ValueError(f"cycle_months must be one of {ALLOWED_CYCLES}")
        return v

    @field_validator('holder_full_name')
    @classmethod
    def strip_holder_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("holder_full_name must not be blank")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_abc123",
                "product_id": 2,
                "cycle_months": 3,
                "holder_full_name": "Awa Traoré",
                "holder_city": "Bamako",
                "holder_neighborhood": "Hamdallaye"
            }
        }


class UpdateStatusRequestSchema(BaseModel):
    """Request schema for PATCH /memberships/subscriptions/{id}/status"""

    status: SubscriptionStatus = Field(
        ...,
        description="Target status: active, paused or cancelled"
    )

    user_id: Optional[str] = Field(
        default=None,
        description="Caller; must own the subscription when given"
    )

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v == SubscriptionStatus.PENDING:
            raise ValueError(f"Cannot set status to {v.value}")
        return v

    class Config:
        json_schema_extra = {
            "example": {"status": "paused", "user_id": "user_abc123"}
        }
