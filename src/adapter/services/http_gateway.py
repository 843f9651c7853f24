"""Shared HTTP plumbing for payment gateway adapters

Maps httpx transport failures and unreadable responses onto the gateway
error taxonomy.
"""

import logging
import re
from typing import Any, Dict, Optional
import httpx
from src.app.services.payment_gateway import (
    PaymentGateway,
    GatewayNetworkError,
    GatewayRejectedError,
)
from src.domain.payment import PaymentStatus

logger = logging.getLogger(__name__)

_COMPLETED_WORDS = {"success", "successful", "completed", "ok", "accepted", "1"}
_FAILED_WORDS = {"failed", "failure", "error", "expired", "refused", "0"}
_CANCELLED_WORDS = {"cancelled", "canceled", "cancel"}


def digits_only(value: Optional[str]) -> str:
    """Strip everything but digits, and a leading international 00"""
    digits = re.sub(r"\D", "", value or "")
    if digits.startswith("00"):
        digits = digits[2:]
    return digits


def map_status_word(value: Any) -> PaymentStatus:
    """Translate a free-form provider status word into a PaymentStatus"""
    word = str(value if value is not None else "").strip().lower()
    if word in _COMPLETED_WORDS:
        return PaymentStatus.COMPLETED
    if word in _CANCELLED_WORDS:
        return PaymentStatus.CANCELLED
    if word in _FAILED_WORDS:
        return PaymentStatus.FAILED
    return PaymentStatus.PENDING


class HttpPaymentGateway(PaymentGateway):
    """
    Base class for gateways spoken to over HTTP

    A new httpx.AsyncClient is opened per operation; tests inject an
    httpx.MockTransport through `transport`.
    """

    label: str = ""

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _request(
        self, client: httpx.AsyncClient, method: str, url: str, **kwargs
    ) -> httpx.Response:
        try:
            return await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{self.label} request timed out: {method} {url}")
            raise GatewayNetworkError(
                f"{self.label} ne répond pas, veuillez réessayer", code="TIMEOUT"
            ) from e
        except httpx.TransportError as e:
            logger.error(f"{self.label} request failed: {method} {url}: {e}")
            raise GatewayNetworkError(
                f"Impossible de joindre {self.label}, vérifiez votre connexion", code="NETWORK_ERROR"
            ) from e

    def _parse_json(self, response: httpx.Response) -> Dict[str, Any]:
        """
        Decode a JSON object body

        Raises:
            GatewayRejectedError: Body is HTML, not JSON, or not an object
        """
        content_type = response.headers.get("content-type", "")
        body = response.text.lstrip()
        if "text/html" in content_type or body.startswith("<"):
            logger.error(f"{self.label} returned HTML (status {response.status_code})")
            raise GatewayRejectedError(
                f"Réponse inattendue de {self.label}", code="INVALID_RESPONSE"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise GatewayRejectedError(
                f"Réponse illisible de {self.label}", code="INVALID_RESPONSE"
            ) from e
        if not isinstance(data, dict):
            raise GatewayRejectedError(
                f"Réponse inattendue de {self.label}", code="INVALID_RESPONSE"
            )
        return data
