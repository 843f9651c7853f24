"""Request schemas for Ô Secours API"""

from typing import Optional
from pydantic import BaseModel, Field
from src.domain.payment import PaymentMethod


class PurchaseTokensRequestSchema(BaseModel):
    """
    Request schema for buying tokens

    Used for POST /secours/subscriptions/{id}/purchase endpoint.
    Monthly limits are checked by the use case, not here.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        description="Owner of the Ô Secours subscription"
    )

    token_amount: int = Field(
        ...,
        gt=0,
        description="Number of tokens to buy"
    )

    payment_method: PaymentMethod = Field(
        ...,
        description="orange_money, sama_money, cinetpay or cash"
    )

    phone_number: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_abc123",
                "token_amount": 20,
                "payment_method": "sama_money",
                "phone_number": "76123456"
            }
        }
