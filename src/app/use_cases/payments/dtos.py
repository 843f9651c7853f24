"""Data Transfer Objects for Payment Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from src.domain.payment import PaymentMethod


class InitiatePaymentCommandDTO(BaseModel):
    """
    Command DTO for paying a pending subscription

    Used as input to InitiateSubscriptionPayment use case.
    """

    subscription_id: int = Field(
        ...,
        description="Pending subscription to pay for"
    )

    user_id: str = Field(
        ...,
        description="Paying user ID (must own the subscription)"
    )

    payment_method: PaymentMethod = Field(
        ...,
        description="orange_money, sama_money or cinetpay"
    )

    phone_number: Optional[str] = Field(
        default=None,
        description="Payer phone number (required for Orange Money and SAMA Money)"
    )

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_city: Optional[str] = None

    return_url: Optional[str] = Field(
        default=None,
        description="Where checkout gateways send the payer back"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "subscription_id": 12,
                "user_id": "user_abc123",
                "payment_method": "sama_money",
                "phone_number": "76123456",
                "customer_name": "Awa Traoré",
            }
        }


class PaymentResponseDTO(BaseModel):
    """
    Response DTO for an initiated payment

    payment_url is set for redirect gateways (Orange Money, CinetPay);
    push gateways (SAMA Money) return a confirmation message instead.
    """

    payment_id: str = Field(..., description="Payment reference to verify with")
    status: str
    amount: int
    currency: str
    payment_method: str
    is_renewal: bool = False
    payment_url: Optional[str] = None
    message: Optional[str] = None
    subscription_id: Optional[int] = None
    created_at: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "payment_id": "SUB_12_1718000000000",
                "status": "pending",
                "amount": 15500,
                "currency": "XOF",
                "payment_method": "orange_money",
                "is_renewal": False,
                "payment_url": "https://webpayment.orange-money.com/payment/pay_token/abc",
                "subscription_id": 12,
                "created_at": "2024-06-10T08:00:00",
            }
        }


class VerifyPaymentCommandDTO(BaseModel):
    """Command DTO for POST /api/payments/verify"""

    payment_id: str = Field(..., description="Payment reference")
    gateway: Optional[str] = Field(default=None, description="Gateway name as sent by the client")


class VerifyPaymentResponseDTO(BaseModel):
    """
    Response DTO for payment verification

    success is True whenever the verification itself ran; the payment outcome
    is in status (pending, completed, failed, cancelled).
    """

    success: bool = True
    status: str
    payment_id: str
    message: Optional[str] = None
    subscription_id: Optional[int] = None
    card_identifier: Optional[str] = None


class ReconciliationResultDTO(BaseModel):
    """Outcome of applying a gateway status to a local payment"""

    payment_id: str
    status: str
    purpose: str
    fulfilled: bool = Field(
        default=False,
        description="Subscription activated / tokens credited"
    )
    fulfilment_error: Optional[str] = None
    subscription_id: Optional[int] = None
    card_identifier: Optional[str] = None


class NotificationAckDTO(BaseModel):
    """Acknowledgement sent back to a gateway webhook"""

    received: bool = True
    payment_id: Optional[str] = None
    status: Optional[str] = None
    detail: Optional[str] = None


class PendingPaymentsSweepDTO(BaseModel):
    """Summary of one reconciler pass"""

    checked: int = 0
    completed: int = 0
    failed: int = 0
    timed_out: int = 0
    still_pending: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)
