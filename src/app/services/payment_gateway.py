"""Payment Gateway Interface

Uniform contract over the mobile-money and checkout providers. Use cases
depend only on this module; provider wire formats live in the adapters.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field
from src.domain.payment import PaymentStatus


class PaymentGatewayError(Exception):
    """Base class for gateway failures"""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class GatewayNetworkError(PaymentGatewayError):
    """Provider unreachable or timed out"""


class GatewayRejectedError(PaymentGatewayError):
    """Provider answered with an error code (message already localized)"""


class InvalidPaymentInputError(PaymentGatewayError):
    """Request failed local validation; nothing was sent to the provider"""


class PaymentRequest(BaseModel):
    """Payment to submit to a gateway"""

    reference: str = Field(..., description="Unique order reference")
    amount: int = Field(..., gt=0, description="Amount in FCFA")
    description: str = Field(..., description="Label shown to the payer")
    phone_number: Optional[str] = Field(
        default=None, description="Payer phone number, already normalized by validate_phone"
    )
    customer_name: Optional[str] = Field(default=None, description="Payer full name")
    customer_email: Optional[str] = Field(default=None, description="Payer email")
    customer_city: Optional[str] = Field(default=None, description="Payer city")
    return_url: Optional[str] = Field(default=None, description="Override of the configured return URL")


class PaymentInitiation(BaseModel):
    """Outcome of a successful initiation"""

    success: bool = True
    transaction_id: str = Field(..., description="Reference to poll with check_status")
    status: PaymentStatus = PaymentStatus.PENDING
    payment_url: Optional[str] = Field(default=None, description="Redirect URL (checkout gateways)")
    external_transaction_id: Optional[str] = None
    message: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class PaymentStatusResult(BaseModel):
    """Provider view of a payment"""

    transaction_id: str
    status: PaymentStatus
    external_transaction_id: Optional[str] = None
    amount: Optional[int] = None
    message: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class PaymentNotification(BaseModel):
    """Reference and claimed status extracted from a provider callback"""

    reference: Optional[str] = None
    status: PaymentStatus = PaymentStatus.PENDING
    raw: Dict[str, Any] = Field(default_factory=dict)


class PaymentGateway(ABC):
    """
    Capability interface implemented once per provider

    Implementations:
    - OrangeMoneyGateway
    - SamaMoneyGateway
    - CinetPayGateway
    """

    name: str = ""

    @abstractmethod
    def validate_phone(self, phone_number: str) -> str:
        """
        Normalize a phone number to the provider's format

        Args:
            phone_number: Number as typed by the user

        Returns:
            Normalized number

        Raises:
            InvalidPaymentInputError: If the number cannot be used with this provider
        """
        pass

    @abstractmethod
    async def initiate_payment(self, request: PaymentRequest) -> PaymentInitiation:
        """
        Submit a payment to the provider

        A fresh auth token is requested for every call.

        Args:
            request: Payment details

        Returns:
            PaymentInitiation with redirect URL or pending status

        Raises:
            InvalidPaymentInputError: Local validation failed
            GatewayRejectedError: Provider refused the payment
            GatewayNetworkError: Provider unreachable
        """
        pass

    @abstractmethod
    async def check_status(self, transaction_id: str) -> PaymentStatusResult:
        """
        Ask the provider for the current status of a payment

        Args:
            transaction_id: Reference returned by initiate_payment

        Returns:
            PaymentStatusResult

        Raises:
            GatewayRejectedError: Provider refused the query
            GatewayNetworkError: Provider unreachable
        """
        pass

    @abstractmethod
    def parse_notification(self, payload: Dict[str, Any]) -> PaymentNotification:
        """
        Extract the reference and claimed status from a provider callback

        The claimed status is informational only; callers re-check with
        check_status before acting on it.
        """
        pass
