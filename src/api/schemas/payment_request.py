"""Request schemas for Payments API"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator
from src.domain.payment import PaymentMethod


class InitiatePaymentRequestSchema(BaseModel):
    """
    Request schema for paying a pending subscription

    Used for POST /payments/initiate endpoint.
    """

    subscription_id: int = Field(
        ...,
        gt=0,
        description="Pending subscription to pay for"
    )

    user_id: str = Field(
        ...,
        min_length=1,
        description="Paying user ID (required, non-empty)"
    )

    payment_method: PaymentMethod = Field(
        ...,
        description="orange_money, sama_money or cinetpay"
    )

    phone_number: Optional[str] = Field(
        default=None,
        description="Payer phone number (Orange Money and SAMA Money)"
    )

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_city: Optional[str] = None
    return_url: Optional[str] = None

    @field_validator('payment_method')
    @classmethod
    def validate_method(cls, v):
        """Memberships are paid through a gateway"""
        if not v.uses_gateway:
            raise ValueError("Membership payments require a payment gateway")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "subscription_id": 12,
                "user_id": "user_abc123",
                "payment_method": "orange_money",
                "phone_number": "+223 76 12 34 56",
                "customer_name": "Awa Traoré"
            }
        }


class VerifyPaymentRequestSchema(BaseModel):
    """
    Request schema for POST /payments/verify

    Called repeatedly by the payment status poller.
    """

    payment_id: str = Field(
        ...,
        alias="paymentId",
        min_length=1,
        description="Payment reference returned by /payments/initiate"
    )

    gateway: Optional[str] = Field(
        default=None,
        description="Gateway the payment was made with"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "paymentId": "SUB_12_1718000000000",
                "gateway": "orange_money"
            }
        }
