"""CinetPay Checkout Gateway

Hosted checkout: the payer is redirected to CinetPay and the result is
looked up with the transaction id.
"""

import logging
import re
from typing import Any, Dict, Optional
import httpx
from src.adapter.services.http_gateway import HttpPaymentGateway, digits_only
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

CINETPAY_ERROR_MESSAGES = {
    "600": "Paiement échoué",
    "602": "Solde insuffisant",
    "608": "Paramètres obligatoires manquants",
    "609": "Clé API CinetPay invalide",
    "613": "Identifiant de site CinetPay invalide",
    "624": "Erreur de traitement, vérifiez la clé API et le site",
    "627": "Transaction annulée",
    "662": "En attente du paiement du client",
}

_TRANSACTION_STATUSES = {
    "ACCEPTED": PaymentStatus.COMPLETED,
    "REFUSED": PaymentStatus.FAILED,
    "FAILED": PaymentStatus.FAILED,
    "EXPIRED": PaymentStatus.FAILED,
    "CANCELED": PaymentStatus.CANCELLED,
    "CANCELLED": PaymentStatus.CANCELLED,
}

_CODE_STATUSES = {
    "600": PaymentStatus.FAILED,
    "627": PaymentStatus.CANCELLED,
    "662": PaymentStatus.PENDING,
}

_MALI_LOCAL = re.compile(r"^[67]\d{7}$")
_SENEGAL_LOCAL = re.compile(r"^[76]\d{8}$")


def cinetpay_error_message(code: str, fallback: Optional[str] = None) -> str:
    return CINETPAY_ERROR_MESSAGES.get(code) or fallback or f"Erreur CinetPay ({code})"


class CinetPayGateway(HttpPaymentGateway):
    """
    CinetPay v2 checkout API

    Wire contract:
    - POST {base}/payment JSON -> code "201", data.payment_url, data.payment_token
    - POST {base}/payment/check JSON -> code "00", data.status
    Credentials travel in the body (apikey, site_id); there is no token step.
    """

    name = "cinetpay"
    label = "CinetPay"

    DEFAULT_BASE_URL = "https://api-checkout.cinetpay.com/v2"

    def __init__(
        self,
        api_key: str,
        site_id: str,
        notify_url: str = "",
        return_url: str = "",
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(timeout=timeout, transport=transport)
        self.api_key = api_key
        self.site_id = site_id
        self.notify_url = notify_url
        self.return_url = return_url
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")

    def validate_phone(self, phone_number: str) -> str:
        """
        Normalize to E.164 (+223XXXXXXXX for Mali, +221XXXXXXXXX for Senegal)

        Numbers without a country code are taken as Malian.
        """
        digits = digits_only(phone_number)
        if digits.startswith("221") and _SENEGAL_LOCAL.match(digits[3:]):
            return f"+{digits}"
        if digits.startswith("223") and len(digits) == 11:
            digits = digits[3:]
        if _MALI_LOCAL.match(digits):
            return f"+223{digits}"
        raise InvalidPaymentInputError(
            "Numéro de téléphone invalide pour CinetPay (Mali ou Sénégal attendu)",
            code="INVALID_PHONE_NUMBER",
        )

    async def initiate_payment(self, request: PaymentRequest) -> PaymentInitiation:
        phone = self.validate_phone(request.phone_number) if request.phone_number else None
        first_name, _, last_name = (request.customer_name or "").partition(" ")

        payload = {
            "apikey": self.api_key,
            "site_id": self.site_id,
            "transaction_id": request.reference,
            "amount": int(request.amount),
            "currency": "XOF",
            "description": request.description,
            "notify_url": self.notify_url,
            "return_url": request.return_url or self.return_url,
            "channels": "ALL",
            "lang": "FR",
            "customer_name": first_name,
            "customer_surname": last_name,
            "customer_email": request.customer_email or "",
            "customer_phone_number": phone or "",
            "customer_city": request.customer_city or "",
            "customer_country": "ML",
        }

        async with self._client() as client:
            response = await self._request(
                client,
                "POST",
                f"{self.base_url}/payment",
                json=payload,
                headers={"Accept": "application/json"},
            )

        data = self._parse_json(response)
        code = str(data.get("code", ""))
        details = data.get("data") or {}
        if code != "201" or not details.get("payment_url"):
            logger.warning(f"CinetPay refused payment {request.reference}: [{code}] {data.get('message')}")
            raise GatewayRejectedError(
                cinetpay_error_message(code, data.get("description") or data.get("message")),
                code=code or "INVALID_RESPONSE",
            )

        logger.info(f"CinetPay payment {request.reference} initiated")
        return PaymentInitiation(
            transaction_id=request.reference,
            status=PaymentStatus.PENDING,
            payment_url=details["payment_url"],
            external_transaction_id=details.get("payment_token"),
            raw={"payment_token": details.get("payment_token")},
        )

    async def check_status(self, transaction_id: str) -> PaymentStatusResult:
        async with self._client() as client:
            response = await self._request(
                client,
                "POST",
                f"{self.base_url}/payment/check",
                json={
                    "apikey": self.api_key,
                    "site_id": self.site_id,
                    "transaction_id": transaction_id,
                },
                headers={"Accept": "application/json"},
            )

        data = self._parse_json(response)
        code = str(data.get("code", ""))
        details = data.get("data") or {}

        if code == "00":
            status = _TRANSACTION_STATUSES.get(
                str(details.get("status", "")).upper(), PaymentStatus.PENDING
            )
        elif code in _CODE_STATUSES:
            status = _CODE_STATUSES[code]
        else:
            raise GatewayRejectedError(
                cinetpay_error_message(code, data.get("message")), code=code or "INVALID_RESPONSE"
            )

        amount = details.get("amount")
        return PaymentStatusResult(
            transaction_id=transaction_id,
            status=status,
            external_transaction_id=details.get("operator_id"),
            amount=int(amount) if amount not in (None, "") else None,
            message=data.get("message"),
            raw=data,
        )

    def parse_notification(self, payload: Dict[str, Any]) -> PaymentNotification:
        reference = payload.get("cpm_trans_id") or payload.get("transaction_id")
        result = str(payload.get("cpm_result") or payload.get("code") or "")
        if result == "00":
            status = PaymentStatus.COMPLETED
        else:
            status = _CODE_STATUSES.get(result, PaymentStatus.PENDING)
        return PaymentNotification(reference=reference, status=status, raw=payload)
