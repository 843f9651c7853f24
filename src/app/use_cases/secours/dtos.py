"""Data Transfer Objects for Ô Secours Token Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field
from src.domain.payment import PaymentMethod


class PurchaseTokensCommandDTO(BaseModel):
    """
    Command DTO for buying tokens

    Used as input to PurchaseTokens use case.
    """

    subscription_id: int = Field(
        ...,
        description="Secours subscription ID"
    )

    user_id: str = Field(
        ...,
        description="Buying user ID (must own the subscription)"
    )

    token_amount: int = Field(
        ...,
        description="Number of tokens to buy"
    )

    payment_method: PaymentMethod = Field(
        ...,
        description="orange_money, sama_money, cinetpay or cash"
    )

    phone_number: Optional[str] = Field(
        default=None,
        description="Payer phone number (mobile money)"
    )

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "subscription_id": 4,
                "user_id": "user_abc123",
                "token_amount": 20,
                "payment_method": "orange_money",
                "phone_number": "+223 76 12 34 56",
            }
        }


class ConfirmTokenPaymentCommandDTO(BaseModel):
    """Command DTO for settling a pending token purchase"""

    transaction_id: int
    succeeded: bool
    failure_reason: Optional[str] = None


class TokenPurchaseResponseDTO(BaseModel):
    """
    Response DTO for PurchaseTokens

    payment_status is "completed" for cash purchases and "pending" while a
    mobile-money confirmation is outstanding.
    """

    transaction_id: int
    subscription_id: int
    subscription_type: str
    token_amount: int
    token_value_fcfa: int
    total_price_fcfa: int
    payment_method: str
    payment_status: str
    payment_reference: Optional[str] = None
    payment_url: Optional[str] = None
    message: Optional[str] = None
    token_balance: int = Field(..., description="Current balance; gateway purchases are credited once the payment completes")
    low_balance_warning: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "transaction_id": 31,
                "subscription_id": 4,
                "subscription_type": "motors",
                "token_amount": 20,
                "token_value_fcfa": 250,
                "total_price_fcfa": 5000,
                "payment_method": "orange_money",
                "payment_status": "pending",
                "payment_reference": "TOKENS_motors_user_abc123_1718000000000",
                "payment_url": "https://webpayment.orange-money.com/payment/pay_token/abc",
                "token_balance": 12,
                "low_balance_warning": True,
            }
        }


class TokenTransactionDTO(BaseModel):
    """Single token transaction"""

    id: int
    transaction_type: str
    token_amount: int
    token_value_fcfa: int
    total_price_fcfa: int
    payment_method: str
    payment_status: str
    payment_reference: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class TokenBalanceResponseDTO(BaseModel):
    """Response DTO for GetTokenBalance"""

    subscription_id: int
    subscription_type: str
    token_balance: int
    token_value_fcfa: int
    rescue_value_fcfa: int
    is_active: bool
    purchased_this_month: int
    monthly_minimum: int
    monthly_maximum: int
    remaining_monthly_allowance: int
    low_balance_warning: bool
    last_token_purchase_date: Optional[datetime] = None


class ListTokenTransactionsResponseDTO(BaseModel):
    """Response DTO for ListTokenTransactions"""

    subscription_id: int
    transactions: List[TokenTransactionDTO]
    total: int
    limit: int
    offset: int


class TokenSettlementResponseDTO(BaseModel):
    """Response DTO for ConfirmTokenPayment"""

    transaction: TokenTransactionDTO
    token_balance: int
    credited: bool = Field(
        default=False,
        description="True only on the call that actually credited the balance"
    )
