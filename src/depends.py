from typing import Dict
from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.repositories import (
    SqlAlchemySubscriptionRepository,
    SqlAlchemyMembershipCardRepository,
    SqlAlchemyMembershipCatalogRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemySecoursSubscriptionRepository,
    SqlAlchemySecoursTransactionRepository,
)
from src.app.services.cache_service import CacheService
from src.app.services.payment_gateway import PaymentGateway
from src.domain.payment import PaymentMethod
from src.app.use_cases.membership.activate_subscription import ActivateSubscription
from src.app.use_cases.secours.confirm_token_payment import ConfirmTokenPayment
from src.app.use_cases.payments.reconcile_payment import ReconcilePayment
from src.app.use_cases.payments.verify_payment import VerifyPayment

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_config(request: Request):
    return request.app.state.config


def get_cache_service(request: Request) -> CacheService:
    return request.app.state.cache


def get_payment_gateways(request: Request) -> Dict[PaymentMethod, PaymentGateway]:
    return request.app.state.payment_gateways


def build_reconcile_payment(session: AsyncSession) -> ReconcilePayment:
    """Wire ReconcilePayment and the fulfilment use cases onto one session"""
    uow = SqlAlchemyUnitOfWork(session)
    activate_subscription = ActivateSubscription(
        uow,
        SqlAlchemySubscriptionRepository(session),
        SqlAlchemyMembershipCardRepository(session),
        SqlAlchemyMembershipCatalogRepository(session),
    )
    confirm_token_payment = ConfirmTokenPayment(
        uow,
        SqlAlchemySecoursSubscriptionRepository(session),
        SqlAlchemySecoursTransactionRepository(session),
    )
    return ReconcilePayment(
        uow,
        SqlAlchemyPaymentRepository(session),
        activate_subscription,
        confirm_token_payment,
    )


def build_verify_payment(
    session: AsyncSession, gateways: Dict[PaymentMethod, PaymentGateway]
) -> VerifyPayment:
    return VerifyPayment(
        SqlAlchemyPaymentRepository(session),
        gateways,
        build_reconcile_payment(session),
    )
