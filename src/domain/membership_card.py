"""Membership Card Domain Entity

Digital membership card issued when a subscription is activated.
"""

import secrets
import string
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, String, Integer, DateTime, JSON
from sqlalchemy import Enum as SAEnum
from src.domain.base import BaseModel, IdType, epoch_millis

QR_PAYLOAD_VERSION = 1

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


class CardStatus(str, Enum):
    """Membership card status types"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


class MembershipCard(BaseModel, table=True):
    """
    Membership Card - Proof of membership with an offline-verifiable QR payload

    Domain Rules:
    - Exactly one card per activated subscription (unique subscription_id)
    - card_identifier and qr_code are globally unique
    - card_expiry_date equals the subscription end_date at issuance
    - Cards are deactivated, never deleted
    """

    __tablename__ = "membership_cards"
    __table_args__ = (
        Index('ix_membership_cards_user_id', 'user_id'),
        Index('ix_membership_cards_status_expiry', 'status', 'card_expiry_date'),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique card identifier (auto-increment)"
    )

    subscription_id: int = Field(
        sa_column=Column(
            IdType,
            ForeignKey("subscriptions.id", ondelete="RESTRICT"),
            nullable=False,
            unique=True,
        ),
        description="Foreign key to Subscription (1:1)"
    )

    user_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Card owner user ID"
    )

    card_identifier: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True),
        description="Human-presentable card number"
    )

    qr_code: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True),
        description="Opaque QR code value"
    )

    qr_data: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Payload encoded in the QR code for offline verification"
    )

    qr_version: int = Field(
        default=QR_PAYLOAD_VERSION,
        sa_column=Column(Integer, nullable=False, default=QR_PAYLOAD_VERSION),
        description="Version of the QR payload layout"
    )

    holder_full_name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Name printed on the card"
    )

    holder_city: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True),
        description="Holder's city"
    )

    holder_neighborhood: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True),
        description="Holder's neighborhood"
    )

    status: CardStatus = Field(
        sa_column=Column(
            SAEnum(CardStatus, values_callable=lambda e: [m.value for m in e],
                   native_enum=False, length=20),
            nullable=False,
        ),
        description="Card status (active, inactive, expired)"
    )

    issued_at: datetime = Field(
        sa_column=Column(DateTime, nullable=False),
        description="Issuance timestamp"
    )

    card_expiry_date: datetime = Field(
        sa_column=Column(DateTime, nullable=False),
        description="Expiry (subscription end_date at issuance)"
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
                "subscription_id": 1,
                "user_id": "user_abc123",
                "card_identifier": "CARD-1704103200000-K3Z9Q",
                "qr_code": "QR-1704103200000-7HD2LM0X",
                "qr_version": 1,
                "holder_full_name": "Awa Traoré",
                "holder_city": "Bamako",
                "status": "active",
                "issued_at": "2024-01-01T10:00:00Z",
                "card_expiry_date": "2024-04-01T10:00:00Z",
            }
        }


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


def generate_card_identifier(issued_at: datetime) -> str:
    """CARD-{epoch_ms}-{5 random chars}"""
    return f"CARD-{epoch_millis(issued_at)}-{_random_suffix(5)}"


def generate_qr_code(issued_at: datetime) -> str:
    """QR-{epoch_ms}-{8 random chars}"""
    return f"QR-{epoch_millis(issued_at)}-{_random_suffix(8)}"


def build_qr_payload(
    card_identifier: str,
    subscription_id: int,
    user_id: str,
    expires_at: datetime,
) -> Dict[str, Any]:
    """Payload a scanner can check without calling back to the service"""
    return {
        "v": QR_PAYLOAD_VERSION,
        "card": card_identifier,
        "subscription_id": subscription_id,
        "user_id": user_id,
        "expires": expires_at.isoformat(),
    }
