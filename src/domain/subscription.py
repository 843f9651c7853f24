"""Subscription Domain Entity

Tracks a user's membership subscription from pending payment through
activation, pause, reactivation and cancellation.
"""

from calendar import monthrange
from datetime import datetime, date
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel as PydanticModel, ConfigDict
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, String, Boolean, Date, DateTime, JSON, text
from sqlalchemy import Enum as SAEnum
from src.domain.base import BaseModel, IdType

LIFECYCLE_METADATA_VERSION = 1
DEFAULT_CYCLE_MONTHS = 12


class SubscriptionStatus(str, Enum):
    """Subscription status types"""
    PENDING = "pending"
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class LifecycleMetadata(PydanticModel):
    """
    Versioned lifecycle record stored alongside a subscription

    Holds denormalized holder/product details captured at creation time and
    the timestamps of every lifecycle transition.
    """

    model_config = ConfigDict(extra="ignore")

    version: int = LIFECYCLE_METADATA_VERSION
    cycle_months: Optional[int] = None
    product_name: Optional[str] = None
    holder_full_name: Optional[str] = None
    holder_city: Optional[str] = None
    holder_neighborhood: Optional[str] = None
    payment_id: Optional[str] = None
    activated_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    reactivated_at: Optional[datetime] = None
    status_updated_at: Optional[datetime] = None
    extra: Dict[str, Any] = {}


class Subscription(BaseModel, table=True):
    """
    Subscription - A user's membership to a product

    Domain Rules:
    - Created as pending; becomes active only through payment confirmation
    - Transitions: pending -> active, active <-> paused, active/paused -> cancelled
    - cancelled is terminal
    - At most one active subscription per (user_id, is_child), enforced by a
      partial unique index
    - end_date is None until activation
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        Index('ix_subscriptions_user_id', 'user_id'),
        Index('ix_subscriptions_status', 'status'),
        Index(
            'uq_subscriptions_one_active_per_kind',
            'user_id',
            'is_child',
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique subscription identifier (auto-increment)"
    )

    user_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Owning user ID"
    )

    product_id: int = Field(
        sa_column=Column(IdType, ForeignKey("membership_products.id"), nullable=False),
        description="Foreign key to MembershipProduct"
    )

    status: SubscriptionStatus = Field(
        sa_column=Column(
            SAEnum(SubscriptionStatus, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=20),
            nullable=False,
        ),
        description="Subscription status (pending, active, paused, cancelled)"
    )

    start_date: datetime = Field(
        sa_column=Column(DateTime, nullable=False),
        description="Subscription creation/start time"
    )

    end_date: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="Coverage end (None until activation)"
    )

    is_recurring: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether the subscription renews"
    )

    is_child: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Child membership (separate active slot from adult)"
    )

    child_name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Child's name (child memberships only)"
    )

    child_birthdate: Optional[date] = Field(
        default=None,
        sa_column=Column(Date, nullable=True),
        description="Child's birth date (child memberships only)"
    )

    metadata_json: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Serialized LifecycleMetadata"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Subscription creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Last update timestamp"
    )

    def get_lifecycle(self) -> LifecycleMetadata:
        """Parse the stored metadata into a LifecycleMetadata record"""
        return LifecycleMetadata.model_validate(self.metadata_json or {})

    def set_lifecycle(self, lifecycle: LifecycleMetadata) -> None:
        """Replace the stored metadata (a new dict so the change is tracked)"""
        self.metadata_json = lifecycle.model_dump(mode="json")

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "user_id": "user_abc123",
                "product_id": 2,
                "status": "active",
                "start_date": "2024-01-01T10:00:00Z",
                "end_date": "2024-04-01T10:05:00Z",
                "is_recurring": True,
                "is_child": False,
                "child_name": None,
                "child_birthdate": None,
                "metadata_json": {
                    "version": 1,
                    "cycle_months": 3,
                    "product_name": "Premium",
                    "holder_full_name": "Awa Traoré",
                    "holder_city": "Bamako",
                },
            }
        }


def add_months(moment: datetime, months: int) -> datetime:
    """
    Add calendar months to a datetime, clamping the day to the month's end

    Args:
        moment: Starting point
        months: Number of months to add (>= 0)

    Returns:
        Shifted datetime with the same time of day
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
