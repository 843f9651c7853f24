"""HTTP Payment Verifier

Verify callable for PaymentStatusPoller that asks the API about a payment.
"""

import logging
from typing import Optional
import httpx

logger = logging.getLogger(__name__)


class HttpPaymentVerifier:
    """
    Calls POST {base_url}/api/payments/verify for one payment

    Usage:
        verifier = HttpPaymentVerifier("https://api.elverra.ml", "SUB_12_1718000000000", "orange_money")
        poller = PaymentStatusPoller(verifier, on_completed=...)
    """

    def __init__(
        self,
        base_url: str,
        payment_id: str,
        gateway: str,
        api_prefix: str = "/api",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = f"{base_url.rstrip('/')}{api_prefix}/payments/verify"
        self.payment_id = payment_id
        self.gateway = gateway
        self.timeout = timeout
        self.transport = transport

    async def __call__(self) -> str:
        """
        Returns:
            Payment status string (pending, completed, failed, cancelled)

        Raises:
            httpx.HTTPError: Request failed or answered with an error status
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                self.url,
                json={"paymentId": self.payment_id, "gateway": self.gateway},
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()

        data = response.json()
        status = data.get("status", "pending")
        logger.debug(f"Payment {self.payment_id} verification returned {status}")
        return status
