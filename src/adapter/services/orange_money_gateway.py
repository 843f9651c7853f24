"""Orange Money Web Payment Gateway

OAuth2 client-credentials token, then a web payment session the payer
completes on Orange's hosted page.
"""

import base64
import logging
import re
from typing import Any, Dict, Optional
import httpx
from src.adapter.services.http_gateway import HttpPaymentGateway, digits_only, map_status_word
from src.app.services.payment_gateway import (
    GatewayRejectedError,
    InvalidPaymentInputError,
    PaymentInitiation,
    PaymentNotification,
    PaymentRequest,
    PaymentStatusResult,
)
from src.domain.payment import PaymentStatus

logger = logging.getLogger(__name__)

_LOCAL_NUMBER = re.compile(r"^[67]\d{7}$")


class OrangeMoneyGateway(HttpPaymentGateway):
    """
    Orange Money Web Payment (Mali)

    Wire contract:
    - POST {auth_url} form grant_type=client_credentials, Basic auth
    - POST {base_url}/webpayment JSON, Bearer token -> payment_url, pay_token
    - GET {base_url}/payment/{order_id} -> status
    Sandbox payments use the OUV test currency.
    """

    name = "orange_money"
    label = "Orange Money"

    AUTH_URL = "https://api.orange.com/oauth/v3/token"
    SANDBOX_BASE_URL = "https://api.orange.com/orange-money-webpay/dev/v1"
    PRODUCTION_BASE_URL = "https://api.orange.com/orange-money-webpay/v1"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        merchant_key: str,
        environment: str = "sandbox",
        return_url: str = "",
        cancel_url: str = "",
        notify_url: str = "",
        base_url: Optional[str] = None,
        auth_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(timeout=timeout, transport=transport)
        self.client_id = client_id
        self.client_secret = client_secret
        self.merchant_key = merchant_key
        self.environment = environment
        self.return_url = return_url
        self.cancel_url = cancel_url
        self.notify_url = notify_url
        is_production = environment == "production"
        self.base_url = (base_url or (
            self.PRODUCTION_BASE_URL if is_production else self.SANDBOX_BASE_URL
        )).rstrip("/")
        self.auth_url = auth_url or self.AUTH_URL
        self.currency = "XOF" if is_production else "OUV"

    def validate_phone(self, phone_number: str) -> str:
        """
        Normalize to the 8-digit local Malian number Orange expects

        Accepts +223/00223/223 prefixes. Returns e.g. "76123456".
        """
        digits = digits_only(phone_number)
        if len(digits) == 11 and digits.startswith("223"):
            digits = digits[3:]
        if not _LOCAL_NUMBER.match(digits):
            raise InvalidPaymentInputError(
                "Numéro Orange Money invalide : 8 chiffres commençant par 6 ou 7 attendus",
                code="INVALID_PHONE_NUMBER",
            )
        return digits

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        credentials = base64.b64encode(
            f"{self.client_id}:{self.client_secret}".encode()
        ).decode()
        response = await self._request(
            client,
            "POST",
            self.auth_url,
            data={"grant_type": "client_credentials"},
            headers={
                "Authorization": f"Basic {credentials}",
                "Accept": "application/json",
            },
        )
        data = self._parse_json(response)
        token = data.get("access_token")
        if response.status_code >= 400 or not token:
            logger.error(f"Orange Money authentication failed with status {response.status_code}")
            raise GatewayRejectedError(
                "Échec de l'authentification Orange Money", code="AUTH_FAILED"
            )
        return token

    async def initiate_payment(self, request: PaymentRequest) -> PaymentInitiation:
        async with self._client() as client:
            token = await self._get_access_token(client)

            payload = {
                "merchant_key": self.merchant_key,
                "currency": self.currency,
                "order_id": request.reference,
                "amount": str(request.amount),
                "return_url": request.return_url or self.return_url,
                "cancel_url": self.cancel_url,
                "notif_url": self.notify_url,
                "lang": "fr",
                "reference": request.description,
            }
            response = await self._request(
                client,
                "POST",
                f"{self.base_url}/webpayment",
                json=payload,
                headers={
                    "Authorization": f"Bearer {token}",
                    "X-Merchant-Key": self.merchant_key,
                    "Accept": "application/json",
                },
            )

        data = self._parse_json(response)
        if response.status_code >= 400:
            raise GatewayRejectedError(
                _error_message(data, "Paiement Orange Money refusé"),
                code=str(data.get("code") or response.status_code),
            )

        payment_url = data.get("payment_url")
        if not payment_url:
            raise GatewayRejectedError(
                "URL de paiement Orange Money manquante", code="MISSING_PAYMENT_URL"
            )

        logger.info(f"Orange Money payment {request.reference} initiated")
        return PaymentInitiation(
            transaction_id=request.reference,
            status=PaymentStatus.PENDING,
            payment_url=payment_url,
            external_transaction_id=data.get("pay_token"),
            raw={"pay_token": data.get("pay_token"), "notif_token": data.get("notif_token")},
        )

    async def check_status(self, transaction_id: str) -> PaymentStatusResult:
        async with self._client() as client:
            token = await self._get_access_token(client)
            response = await self._request(
                client,
                "GET",
                f"{self.base_url}/payment/{transaction_id}",
                headers={
                    "Authorization": f"Bearer {token}",
                    "X-Merchant-Key": self.merchant_key,
                    "Accept": "application/json",
                },
            )

        data = self._parse_json(response)
        if response.status_code >= 400:
            raise GatewayRejectedError(
                _error_message(data, "Vérification Orange Money impossible"),
                code=str(data.get("code") or response.status_code),
            )

        return PaymentStatusResult(
            transaction_id=transaction_id,
            status=map_status_word(data.get("status")),
            external_transaction_id=data.get("txnid") or data.get("pay_token"),
            raw=data,
        )

    def parse_notification(self, payload: Dict[str, Any]) -> PaymentNotification:
        reference = (
            payload.get("order_id")
            or payload.get("reference")
            or payload.get("ref")
            or payload.get("orderId")
        )
        status = map_status_word(payload.get("status") or payload.get("status_code"))
        return PaymentNotification(reference=reference, status=status, raw=payload)


def _error_message(data: Dict[str, Any], default: str) -> str:
    return data.get("description") or data.get("message") or default
