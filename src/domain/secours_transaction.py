"""Ô Secours Transaction Domain Entity

Token purchases and rescue claims against a secours subscription.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, String, Integer, DateTime
from sqlalchemy import Enum as SAEnum
from src.domain.base import BaseModel, IdType
from src.domain.payment import PaymentMethod


class SecoursTransactionType(str, Enum):
    """Token transaction types"""
    PURCHASE = "purchase"
    RESCUE_CLAIM = "rescue_claim"


class SecoursPaymentStatus(str, Enum):
    """Token transaction payment status"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class SecoursTransaction(BaseModel, table=True):
    """
    Secours Transaction - A token movement on a secours subscription

    Domain Rules:
    - total_price_fcfa = token_amount * token_value_fcfa
    - Gateway purchases start pending; cash purchases are completed at once
    - Balance is credited exactly once, when the purchase completes
    """

    __tablename__ = "secours_transactions"
    __table_args__ = (
        Index('ix_secours_transactions_subscription_created', 'subscription_id', 'created_at'),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique transaction identifier"
    )

    subscription_id: int = Field(
        sa_column=Column(IdType, ForeignKey("secours_subscriptions.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to SecoursSubscription"
    )

    user_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="User who made the transaction"
    )

    transaction_type: SecoursTransactionType = Field(
        sa_column=Column(
            SAEnum(SecoursTransactionType, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=20),
            nullable=False,
        ),
        description="Transaction type (purchase, rescue_claim)"
    )

    token_amount: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Number of tokens"
    )

    token_value_fcfa: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="FCFA per token at transaction time"
    )

    total_price_fcfa: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="token_amount * token_value_fcfa"
    )

    payment_method: PaymentMethod = Field(
        sa_column=Column(
            SAEnum(PaymentMethod, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=20),
            nullable=False,
        ),
        description="Payment method used"
    )

    payment_status: SecoursPaymentStatus = Field(
        sa_column=Column(
            SAEnum(SecoursPaymentStatus, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=20),
            nullable=False,
        ),
        description="Payment status (pending, completed, failed)"
    )

    payment_reference: Optional[str] = Field(
        default=None,
        sa_column=Column(String(128), nullable=True, unique=True),
        description="Gateway order id for gateway purchases"
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

    completed_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="When the purchase completed"
    )
