"""Unit tests for CinetPayGateway against a mocked HTTP transport"""

import json
import pytest
import httpx

from src.adapter.services.cinetpay_gateway import CinetPayGateway
from src.app.services.payment_gateway import (
    GatewayRejectedError,
    InvalidPaymentInputError,
    PaymentRequest,
)
from src.domain.payment import PaymentStatus

BASE_URL = "https://cinetpay.test/v2"


def make_gateway(handler):
    return CinetPayGateway(
        api_key="api_key",
        site_id="445160",
        notify_url="https://api.elverra.test/api/payments/webhooks/cinetpay",
        return_url="https://elverra.test/return",
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
    )


PAYMENT = PaymentRequest(
    reference="SUB_12_1715769000000",
    amount=15500,
    description="Carte Premium - 3 mois",
    customer_name="Awa Traoré",
    customer_city="Bamako",
)


class TestValidatePhone:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("76123456", "+22376123456"),
            ("+223 76 12 34 56", "+22376123456"),
            ("+221 77 123 45 67", "+221771234567"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert make_gateway(lambda r: httpx.Response(500)).validate_phone(raw) == expected

    def test_rejects_unknown_country(self):
        with pytest.raises(InvalidPaymentInputError):
            make_gateway(lambda r: httpx.Response(500)).validate_phone("+33 6 12 34 56 78")


@pytest.mark.asyncio
class TestInitiatePayment:

    async def test_returns_checkout_url(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "code": "201",
                    "message": "CREATED",
                    "data": {"payment_token": "ptk", "payment_url": "https://checkout.cinetpay.test/ptk"},
                },
            )

        initiation = await make_gateway(handler).initiate_payment(PAYMENT)

        assert initiation.payment_url == "https://checkout.cinetpay.test/ptk"
        assert initiation.external_transaction_id == "ptk"
        assert seen["path"] == "/v2/payment"
        assert seen["body"]["transaction_id"] == "SUB_12_1715769000000"
        assert seen["body"]["amount"] == 15500
        assert seen["body"]["currency"] == "XOF"
        assert seen["body"]["customer_name"] == "Awa"
        assert seen["body"]["customer_surname"] == "Traoré"

    async def test_invalid_api_key(self):
        gateway = make_gateway(lambda r: httpx.Response(200, json={"code": "609", "message": "AUTH_NOT_FOUND"}))

        with pytest.raises(GatewayRejectedError) as exc_info:
            await gateway.initiate_payment(PAYMENT)
        assert exc_info.value.code == "609"
        assert exc_info.value.message == "Clé API CinetPay invalide"


@pytest.mark.asyncio
class TestCheckStatus:

    @pytest.mark.parametrize(
        "body,expected",
        [
            ({"code": "00", "data": {"status": "ACCEPTED", "amount": "15500"}}, PaymentStatus.COMPLETED),
            ({"code": "00", "data": {"status": "REFUSED"}}, PaymentStatus.FAILED),
            ({"code": "662", "message": "WAITING_CUSTOMER_PAYMENT"}, PaymentStatus.PENDING),
            ({"code": "627", "message": "TRANSACTION_CANCEL"}, PaymentStatus.CANCELLED),
            ({"code": "600", "message": "PAYMENT_FAILED"}, PaymentStatus.FAILED),
        ],
    )
    async def test_maps_status(self, body, expected):
        result = await make_gateway(lambda r: httpx.Response(200, json=body)).check_status("SUB_12_1715769000000")

        assert result.status == expected

    async def test_unknown_code_raises(self):
        gateway = make_gateway(lambda r: httpx.Response(200, json={"code": "613", "message": "ERROR_SITE_ID_NOTVALID"}))

        with pytest.raises(GatewayRejectedError):
            await gateway.check_status("SUB_12_1715769000000")


class TestParseNotification:

    def test_success_notification(self):
        notification = make_gateway(lambda r: httpx.Response(500)).parse_notification(
            {"cpm_trans_id": "SUB_12_1715769000000", "cpm_result": "00", "cpm_site_id": "445160"}
        )

        assert notification.reference == "SUB_12_1715769000000"
        assert notification.status == PaymentStatus.COMPLETED
