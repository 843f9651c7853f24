import pytest
import pytest_asyncio
from typing import Any, Dict, List, Optional
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain  # noqa: F401  registers every table on SQLModel.metadata
from config import ApplicationConfig
from src.app.services.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentInitiation,
    PaymentNotification,
    PaymentRequest,
    PaymentStatusResult,
)
from src.depends import get_session
from src.domain.membership_product import (
    MembershipProduct,
    MembershipPricing,
    MembershipCycle,
    ProductKind,
    AdultTier,
)
from src.domain.payment import PaymentMethod, PaymentStatus


class IntegrationConfig(ApplicationConfig):
    API_PREFIX = "/api"
    CACHE_BACKEND = "memory"
    ENABLE_SENTRY = 0
    ENABLE_LOGGING_MIDDLEWARE = False
    ORANGE_MONEY_CLIENT_ID = None
    SAMA_MONEY_MERCHANT_CODE = None
    CINETPAY_API_KEY = None


class FakeGateway(PaymentGateway):
    """In-process gateway: records initiations and answers the status it is told to"""

    def __init__(self, name: str, payment_url: str = None):
        self.name = name
        self.payment_url = payment_url
        self.statuses: Dict[str, PaymentStatus] = {}
        self.initiated: List[PaymentRequest] = []
        # Raised after the order is recorded, like a timeout on the response
        self.initiate_error: Optional[PaymentGatewayError] = None

    def validate_phone(self, phone_number: str) -> str:
        return "".join(ch for ch in phone_number if ch.isdigit())[-8:]

    async def initiate_payment(self, request: PaymentRequest) -> PaymentInitiation:
        self.initiated.append(request)
        if self.initiate_error is not None:
            raise self.initiate_error
        return PaymentInitiation(
            transaction_id=request.reference,
            payment_url=self.payment_url,
            external_transaction_id=f"ext-{request.reference}",
        )

    async def check_status(self, transaction_id: str) -> PaymentStatusResult:
        return PaymentStatusResult(
            transaction_id=transaction_id,
            status=self.statuses.get(transaction_id, PaymentStatus.PENDING),
            external_transaction_id=f"ext-{transaction_id}",
        )

    def parse_notification(self, payload: Dict[str, Any]) -> PaymentNotification:
        return PaymentNotification(
            reference=payload.get("order_id"),
            status=PaymentStatus.COMPLETED if payload.get("status") == "SUCCESS" else PaymentStatus.PENDING,
            raw=payload,
        )


@pytest_asyncio.fixture(scope="function")
async def engine():
    """In-memory SQLite shared by every connection of the test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Create a new database session for each test"""
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(db_session):
    """Essential/Premium/Elite adult products, one child product, four cycles"""
    products = {
        "essential": MembershipProduct(kind=ProductKind.ADULT, adult_tier=AdultTier.ESSENTIAL, name="Essentiel"),
        "premium": MembershipProduct(kind=ProductKind.ADULT, adult_tier=AdultTier.PREMIUM, name="Premium"),
        "elite": MembershipProduct(kind=ProductKind.ADULT, adult_tier=AdultTier.ELITE, name="Elite"),
        "child": MembershipProduct(kind=ProductKind.CHILD, name="Enfant"),
    }
    db_session.add_all(products.values())
    await db_session.flush()

    for months in (1, 3, 6, 12):
        db_session.add(MembershipCycle(months=months, label=f"{months} mois"))
        db_session.add(
            MembershipPricing(
                product_id=products["premium"].id,
                cycle_months=months,
                purchase_price_cfa=5000 * months,
                renewal_price_cfa=4000 * months,
                fee_cfa=500,
            )
        )
    db_session.add(
        MembershipPricing(
            product_id=products["child"].id,
            cycle_months=12,
            purchase_price_cfa=20000,
            renewal_price_cfa=18000,
            fee_cfa=0,
        )
    )
    await db_session.commit()
    return products


@pytest.fixture
def gateways():
    return {
        PaymentMethod.ORANGE_MONEY: FakeGateway("orange_money", payment_url="https://om.test/pay"),
        PaymentMethod.SAMA_MONEY: FakeGateway("sama_money"),
    }


@pytest_asyncio.fixture
async def client(db_session, gateways):
    """Create test client with database session and gateway overrides"""
    from src.api.app import create_app

    app = create_app(IntegrationConfig)
    app.state.payment_gateways = gateways

    # Override the session dependency to use test session
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
