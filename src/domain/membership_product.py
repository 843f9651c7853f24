"""Membership Catalog Domain Entities

Reference data describing what can be subscribed to: products (tiers),
their pricing per billing cycle, and the allowed billing cycles.
The lifecycle core reads these entities but never mutates them.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, String, Integer, Boolean, DateTime, JSON, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from src.domain.base import BaseModel, IdType


class ProductKind(str, Enum):
    """Membership product categories"""
    ADULT = "adult"
    CHILD = "child"


class AdultTier(str, Enum):
    """Adult membership tiers"""
    ESSENTIAL = "essential"
    PREMIUM = "premium"
    ELITE = "elite"


class MembershipProduct(BaseModel, table=True):
    """
    Membership Product - A subscribable membership tier

    Domain Rules:
    - kind=child products carry no adult_tier
    - Only active products can be subscribed to
    """

    __tablename__ = "membership_products"

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique product identifier"
    )

    kind: ProductKind = Field(
        sa_column=Column(
            SAEnum(ProductKind, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=10),
            nullable=False,
        ),
        description="Product category (adult, child)"
    )

    adult_tier: Optional[AdultTier] = Field(
        default=None,
        sa_column=Column(
            SAEnum(AdultTier, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=20),
            nullable=True,
        ),
        description="Adult tier (essential, premium, elite)"
    )

    name: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Display name of the product"
    )

    features: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="List of advertised benefits"
    )

    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether the product can be subscribed to"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Creation timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 2,
                "kind": "adult",
                "adult_tier": "premium",
                "name": "Premium",
                "features": ["Réductions partenaires", "Assistance Ô Secours"],
                "is_active": True,
            }
        }


class MembershipPricing(BaseModel, table=True):
    """
    Membership Pricing - Price of a product for a given billing cycle

    Amounts are whole FCFA. fee_cfa is added on top of the purchase or
    renewal price.
    """

    __tablename__ = "membership_pricing"
    __table_args__ = (
        UniqueConstraint("product_id", "cycle_months", name="uq_membership_pricing_product_cycle"),
        Index("ix_membership_pricing_product_id", "product_id"),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique pricing identifier"
    )

    product_id: int = Field(
        sa_column=Column(IdType, ForeignKey("membership_products.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to MembershipProduct"
    )

    cycle_months: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Billing cycle length in months"
    )

    purchase_price_cfa: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="First purchase price (FCFA)"
    )

    renewal_price_cfa: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Renewal price (FCFA)"
    )

    fee_cfa: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Processing fee added to every payment (FCFA)"
    )

    active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether this price is currently offered"
    )


class MembershipCycle(BaseModel, table=True):
    """Membership Cycle - An allowed billing duration"""

    __tablename__ = "membership_cycles"

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique cycle identifier"
    )

    months: int = Field(
        sa_column=Column(Integer, nullable=False, unique=True),
        description="Cycle length in months (1, 3, 6, 12)"
    )

    label: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Display label (e.g. '3 mois')"
    )

    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether the cycle is offered"
    )
