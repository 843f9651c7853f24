"""Unit tests for HttpPaymentVerifier"""

import json
import pytest
import httpx

from src.adapter.services.payment_verifier_client import HttpPaymentVerifier
from src.app.services.payment_poller import PaymentStatusPoller


@pytest.mark.asyncio
class TestHttpPaymentVerifier:

    async def test_posts_payment_id_and_gateway(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "status": "completed", "payment_id": "SUB_12_1"})

        verifier = HttpPaymentVerifier(
            "https://api.elverra.test/", "SUB_12_1", "orange_money", transport=httpx.MockTransport(handler)
        )

        assert await verifier() == "completed"
        assert seen["url"] == "https://api.elverra.test/api/payments/verify"
        assert seen["body"] == {"paymentId": "SUB_12_1", "gateway": "orange_money"}

    async def test_http_error_raises(self):
        verifier = HttpPaymentVerifier(
            "https://api.elverra.test",
            "SUB_12_1",
            "sama_money",
            transport=httpx.MockTransport(lambda request: httpx.Response(500, json={})),
        )

        with pytest.raises(httpx.HTTPStatusError):
            await verifier()

    async def test_drives_poller_to_completion(self):
        answers = iter(["pending", "pending", "completed"])
        verifier = HttpPaymentVerifier(
            "https://api.elverra.test",
            "SUB_12_1",
            "cinetpay",
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json={"status": next(answers), "payment_id": "SUB_12_1"})
            ),
        )

        status = await PaymentStatusPoller(verifier, interval_seconds=0.001).wait()

        assert status == "completed"
