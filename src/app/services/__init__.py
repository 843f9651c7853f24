from .unit_of_work import UnitOfWork
from .cache_service import CacheService
from .card_document_service import CardDocumentService
from .payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    GatewayNetworkError,
    GatewayRejectedError,
    InvalidPaymentInputError,
    PaymentRequest,
    PaymentInitiation,
    PaymentStatusResult,
    PaymentNotification,
)
from .payment_poller import PaymentStatusPoller

__all__ = [
    "UnitOfWork",
    "CacheService",
    "CardDocumentService",
    "PaymentGateway",
    "PaymentGatewayError",
    "GatewayNetworkError",
    "GatewayRejectedError",
    "InvalidPaymentInputError",
    "PaymentRequest",
    "PaymentInitiation",
    "PaymentStatusResult",
    "PaymentNotification",
    "PaymentStatusPoller",
]
