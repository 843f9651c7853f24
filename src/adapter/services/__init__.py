from .unit_of_work import SqlAlchemyUnitOfWork
from .cache_service import (
    InMemoryCacheService,
    RedisCacheService,
    create_cache_service,
)
from .card_pdf_service import ReportLabCardDocumentService
from .orange_money_gateway import OrangeMoneyGateway
from .sama_money_gateway import SamaMoneyGateway
from .cinetpay_gateway import CinetPayGateway
from .payment_gateway_factory import create_payment_gateways
from .payment_verifier_client import HttpPaymentVerifier

__all__ = [
    "SqlAlchemyUnitOfWork",
    "InMemoryCacheService",
    "RedisCacheService",
    "create_cache_service",
    "ReportLabCardDocumentService",
    "OrangeMoneyGateway",
    "SamaMoneyGateway",
    "CinetPayGateway",
    "create_payment_gateways",
    "HttpPaymentVerifier",
]
