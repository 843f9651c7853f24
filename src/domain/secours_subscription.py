"""Ô Secours Subscription Domain Entity

Per-service emergency-assistance token account, plus the fixed pricing
and purchase-limit tables for each service type.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Tuple
from sqlmodel import Field, Column, Index
from sqlalchemy import String, Integer, Boolean, DateTime, CheckConstraint, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from src.domain.base import BaseModel, IdType


class SecoursServiceType(str, Enum):
    """Emergency-assistance service types"""
    AUTO = "auto"
    CATA_CATANIS = "cata_catanis"
    SCHOOL_FEES = "school_fees"
    MOTORS = "motors"
    TELEPHONE = "telephone"


# FCFA per token
TOKEN_VALUES_FCFA = {
    SecoursServiceType.AUTO: 750,
    SecoursServiceType.CATA_CATANIS: 500,
    SecoursServiceType.SCHOOL_FEES: 500,
    SecoursServiceType.MOTORS: 250,
    SecoursServiceType.TELEPHONE: 250,
}

RESCUE_MULTIPLIER = 1.5

# Tokens per calendar month: (minimum per purchase, maximum monthly total)
PURCHASE_LIMITS = {
    SecoursServiceType.AUTO: (10, 60),
    SecoursServiceType.CATA_CATANIS: (10, 60),
    SecoursServiceType.SCHOOL_FEES: (10, 60),
    SecoursServiceType.MOTORS: (10, 60),
    SecoursServiceType.TELEPHONE: (10, 60),
}

LOW_BALANCE_THRESHOLD = 30


def token_value_for(service_type: SecoursServiceType) -> int:
    return TOKEN_VALUES_FCFA[service_type]


def rescue_value_for(service_type: SecoursServiceType) -> int:
    return int(TOKEN_VALUES_FCFA[service_type] * RESCUE_MULTIPLIER)


def calendar_month_bounds(moment: datetime) -> Tuple[datetime, datetime]:
    """[first instant of the month, first instant of the next month)"""
    start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        return start, start.replace(year=start.year + 1, month=1)
    return start, start.replace(month=start.month + 1)


class SecoursSubscription(BaseModel, table=True):
    """
    Secours Subscription - Token account for one emergency-assistance service

    Domain Rules:
    - token_balance never goes negative (CHECK constraint)
    - token_value and rescue_value are fixed by subscription_type
    - One subscription per (user_id, subscription_type)
    """

    __tablename__ = "secours_subscriptions"
    __table_args__ = (
        CheckConstraint('token_balance >= 0', name='check_secours_token_balance_non_negative'),
        UniqueConstraint('user_id', 'subscription_type', name='uq_secours_subscriptions_user_type'),
        Index('ix_secours_subscriptions_user_id', 'user_id'),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique token subscription identifier"
    )

    user_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Owning user ID"
    )

    subscription_type: SecoursServiceType = Field(
        sa_column=Column(
            SAEnum(SecoursServiceType, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=20),
            nullable=False,
        ),
        description="Service type (auto, cata_catanis, school_fees, motors, telephone)"
    )

    token_balance: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Tokens available (>= 0)"
    )

    token_value: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="FCFA per token"
    )

    rescue_value: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="FCFA paid out per token on a rescue claim"
    )

    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether tokens can be bought"
    )

    last_token_purchase_date: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="Last completed purchase"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Last update timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "user_id": "user_abc123",
                "subscription_type": "motors",
                "token_balance": 45,
                "token_value": 250,
                "rescue_value": 375,
                "is_active": True,
            }
        }
