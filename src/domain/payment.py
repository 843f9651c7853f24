"""Payment Domain Entity

Record of a payment taken through an external gateway, used to reconcile
gateway confirmations with local subscriptions and token purchases.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, String, Integer, DateTime, JSON
from sqlalchemy import Enum as SAEnum
from src.domain.base import BaseModel, IdType, epoch_millis


class PaymentMethod(str, Enum):
    """Supported payment methods"""
    ORANGE_MONEY = "orange_money"
    SAMA_MONEY = "sama_money"
    CINETPAY = "cinetpay"
    CASH = "cash"

    @property
    def uses_gateway(self) -> bool:
        return self is not PaymentMethod.CASH


class PaymentStatus(str, Enum):
    """Payment status types"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


class PaymentPurpose(str, Enum):
    """What a payment pays for"""
    MEMBERSHIP = "membership"
    TOKENS = "tokens"


class Payment(BaseModel, table=True):
    """
    Payment - A gateway payment attempt

    Domain Rules:
    - reference is the order id sent to the gateway and is unique
    - purpose=membership links subscription_id, purpose=tokens links
      secours_transaction_id
    - Status transitions: pending -> completed/failed/cancelled (terminal)
    """

    __tablename__ = "payments"
    __table_args__ = (
        Index('ix_payments_status_created_at', 'status', 'created_at'),
        Index('ix_payments_user_id', 'user_id'),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique payment identifier (auto-increment)"
    )

    reference: str = Field(
        sa_column=Column(String(128), nullable=False, unique=True),
        description="Order id sent to the gateway"
    )

    user_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Paying user ID"
    )

    purpose: PaymentPurpose = Field(
        sa_column=Column(
            SAEnum(PaymentPurpose, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=20),
            nullable=False,
        ),
        description="What the payment is for (membership, tokens)"
    )

    payment_method: PaymentMethod = Field(
        sa_column=Column(
            SAEnum(PaymentMethod, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=20),
            nullable=False,
        ),
        description="Gateway used"
    )

    amount: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Amount in FCFA"
    )

    currency: str = Field(
        default="XOF",
        sa_column=Column(String(3), nullable=False, default="XOF"),
        description="ISO currency code"
    )

    status: PaymentStatus = Field(
        sa_column=Column(
            SAEnum(PaymentStatus, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=20),
            nullable=False,
        ),
        description="Payment status"
    )

    subscription_id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, ForeignKey("subscriptions.id"), nullable=True),
        description="Subscription paid for (membership payments)"
    )

    secours_transaction_id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, ForeignKey("secours_transactions.id"), nullable=True),
        description="Token transaction paid for (token payments)"
    )

    external_transaction_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Gateway-side identifier (pay_token, numTransacSAMA, ...)"
    )

    payment_url: Optional[str] = Field(
        default=None,
        sa_column=Column(String(1024), nullable=True),
        description="Redirect URL for checkout-style gateways"
    )

    failure_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True),
        description="Why the payment failed"
    )

    metadata_json: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Gateway response details"
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
        description="When the payment reached a terminal status"
    )


def membership_payment_reference(subscription_id: int, now: datetime) -> str:
    """SUB_{subscription_id}_{epoch_ms}"""
    return f"SUB_{subscription_id}_{epoch_millis(now)}"


def token_payment_reference(service_type: str, user_id: str, now: datetime) -> str:
    """TOKENS_{service}_{user_id}_{epoch_ms}"""
    return f"TOKENS_{service_type}_{user_id}_{epoch_millis(now)}"
