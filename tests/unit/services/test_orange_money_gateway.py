"""Unit tests for OrangeMoneyGateway against a mocked HTTP transport"""

import json
import pytest
import httpx

from src.adapter.services.orange_money_gateway import OrangeMoneyGateway
from src.app.services.payment_gateway import (
    GatewayNetworkError,
    GatewayRejectedError,
    InvalidPaymentInputError,
    PaymentRequest,
)
from src.domain.payment import PaymentStatus

BASE_URL = "https://om.test/v1"
AUTH_URL = "https://om.test/oauth/token"


def make_gateway(handler, environment="sandbox"):
    return OrangeMoneyGateway(
        client_id="client",
        client_secret="secret",
        merchant_key="mk_123",
        environment=environment,
        return_url="https://elverra.test/return",
        cancel_url="https://elverra.test/cancel",
        notify_url="https://api.elverra.test/api/payments/webhooks/orange_money",
        base_url=BASE_URL,
        auth_url=AUTH_URL,
        transport=httpx.MockTransport(handler),
    )


def token_or(handler):
    """Wrap a handler so the OAuth call always succeeds"""

    def wrapped(request: httpx.Request) -> httpx.Response:
        if str(request.url) == AUTH_URL:
            return httpx.Response(200, json={"access_token": "tok_abc", "expires_in": 3600})
        return handler(request)

    return wrapped


PAYMENT = PaymentRequest(
    reference="SUB_12_1715769000000",
    amount=15500,
    description="Carte Premium - 3 mois",
    phone_number="76123456",
)


class TestValidatePhone:

    @pytest.mark.parametrize(
        "raw",
        ["76123456", "+223 76 12 34 56", "0022376123456", "223-76-12-34-56"],
    )
    def test_accepts_malian_numbers(self, raw):
        gateway = make_gateway(lambda request: httpx.Response(500))

        assert gateway.validate_phone(raw) == "76123456"

    @pytest.mark.parametrize("raw", ["", "12345678", "7612345", "+221 77 123 45 67"])
    def test_rejects_invalid_numbers(self, raw):
        gateway = make_gateway(lambda request: httpx.Response(500))

        with pytest.raises(InvalidPaymentInputError) as exc_info:
            gateway.validate_phone(raw)
        assert exc_info.value.code == "INVALID_PHONE_NUMBER"


@pytest.mark.asyncio
class TestInitiatePayment:

    async def test_creates_web_payment(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                201,
                json={
                    "status": 201,
                    "pay_token": "pt_789",
                    "payment_url": "https://webpayment.om.test/pay/pt_789",
                    "notif_token": "nt_456",
                },
            )

        gateway = make_gateway(token_or(handler))

        initiation = await gateway.initiate_payment(PAYMENT)

        assert initiation.status == PaymentStatus.PENDING
        assert initiation.transaction_id == "SUB_12_1715769000000"
        assert initiation.payment_url == "https://webpayment.om.test/pay/pt_789"
        assert initiation.external_transaction_id == "pt_789"
        assert seen["url"] == f"{BASE_URL}/webpayment"
        assert seen["auth"] == "Bearer tok_abc"
        assert seen["body"]["order_id"] == "SUB_12_1715769000000"
        assert seen["body"]["amount"] == "15500"
        assert seen["body"]["currency"] == "OUV"

    async def test_production_uses_xof(self):
        gateway = make_gateway(lambda request: httpx.Response(500), environment="production")

        assert gateway.currency == "XOF"

    async def test_rejected_payment(self):
        gateway = make_gateway(
            token_or(lambda request: httpx.Response(400, json={"code": 41, "description": "Montant invalide"}))
        )

        with pytest.raises(GatewayRejectedError) as exc_info:
            await gateway.initiate_payment(PAYMENT)
        assert exc_info.value.message == "Montant invalide"
        assert exc_info.value.code == "41"

    async def test_auth_failure(self):
        gateway = make_gateway(lambda request: httpx.Response(401, json={"error": "invalid_client"}))

        with pytest.raises(GatewayRejectedError) as exc_info:
            await gateway.initiate_payment(PAYMENT)
        assert exc_info.value.code == "AUTH_FAILED"

    async def test_html_response_is_rejected(self):
        gateway = make_gateway(
            token_or(
                lambda request: httpx.Response(
                    502, text="<html>Bad gateway</html>", headers={"content-type": "text/html"}
                )
            )
        )

        with pytest.raises(GatewayRejectedError) as exc_info:
            await gateway.initiate_payment(PAYMENT)
        assert exc_info.value.code == "INVALID_RESPONSE"

    async def test_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        gateway = make_gateway(handler)

        with pytest.raises(GatewayNetworkError) as exc_info:
            await gateway.initiate_payment(PAYMENT)
        assert exc_info.value.code == "TIMEOUT"

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        gateway = make_gateway(handler)

        with pytest.raises(GatewayNetworkError) as exc_info:
            await gateway.initiate_payment(PAYMENT)
        assert exc_info.value.code == "NETWORK_ERROR"


@pytest.mark.asyncio
class TestCheckStatus:

    @pytest.mark.parametrize(
        "word,expected",
        [
            ("SUCCESS", PaymentStatus.COMPLETED),
            ("FAILED", PaymentStatus.FAILED),
            ("EXPIRED", PaymentStatus.FAILED),
            ("INITIATED", PaymentStatus.PENDING),
            ("PENDING", PaymentStatus.PENDING),
        ],
    )
    async def test_maps_status(self, word, expected):
        def handler(request):
            assert request.url.path.endswith("/payment/SUB_12_1715769000000")
            return httpx.Response(200, json={"status": word, "txnid": "MP240515.1030.A12345"})

        gateway = make_gateway(token_or(handler))

        result = await gateway.check_status("SUB_12_1715769000000")

        assert result.status == expected
        assert result.external_transaction_id == "MP240515.1030.A12345"


class TestParseNotification:

    def test_reads_order_id_and_status(self):
        gateway = make_gateway(lambda request: httpx.Response(500))

        notification = gateway.parse_notification(
            {"order_id": "SUB_12_1715769000000", "status": "SUCCESS", "txnid": "MP1"}
        )

        assert notification.reference == "SUB_12_1715769000000"
        assert notification.status == PaymentStatus.COMPLETED
