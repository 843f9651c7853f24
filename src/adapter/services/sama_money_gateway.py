"""SAMA Money Merchant Gateway

Push-payment: the payer confirms on their phone (USSD) after the merchant
submits the order. All bodies are form-encoded.
"""

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

SAMA_ERROR_MESSAGES = {
    0: "Erreur non codifiée",
    1001: "Vous n'êtes pas autorisé",
    1002: "Le code marchand est incorrect",
    1003: "Les codes fournis sont incorrects",
    1004: "Le format du token est incorrect",
    1005: "Le format du montant est incorrect",
    1006: "Le format du numéro de téléphone du client est incorrect",
    1007: "La description est incorrecte",
    1008: "Url Callback est incorrect",
    1009: "Le token du partenaire a expiré",
    1010: "Ce numéro n'est pas celui d'un client SAMA Money",
    1011: "Ce numéro de commande existe déjà",
    1012: "Utilisateur n'est pas dans le bon groupe",
    1013: "Solde Insuffisant",
    1014: "Probleme de lancement USSD",
    1015: "Demande non envoyé merci de recommencer",
}

# Status codes on a transaction lookup that mean the payment cannot succeed
_FAILED_CODES = {1010, 1013, 1014, 1015}

_FULL_NUMBER = re.compile(r"^223\d{8}$")

CONFIRMATION_SENT_MESSAGE = "Demande de confirmation envoyée au client"


def sama_error_message(code: int) -> str:
    return SAMA_ERROR_MESSAGES.get(code, f"Erreur SAMA Money ({code})")


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class SamaMoneyGateway(HttpPaymentGateway):
    """
    SAMA Money merchant API

    Wire contract:
    - POST {base}/marchand/auth (cmd, cle_publique) -> resultat.token, valid ~24h
    - POST {base}/marchand/pay (cmd, idCommande, phoneClient, montant,
      description, tokenMarchand, url) -> status 1 when the USSD prompt is sent
    - GET {base}/marchand/transaction/infos?cmd=&idCommande= -> status 1 when paid
    Every request carries the TRANSAC header. A token is requested for each
    operation rather than reused across its validity window.
    """

    name = "sama_money"
    label = "SAMA Money"

    DEFAULT_BASE_URL = "https://smarchandamatest.sama.money/V1"

    def __init__(
        self,
        merchant_code: str,
        public_key: str,
        transac_header: str,
        callback_url: str = "",
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(timeout=timeout, transport=transport)
        self.merchant_code = merchant_code
        self.public_key = public_key
        self.transac_header = transac_header
        self.callback_url = callback_url
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")

    def validate_phone(self, phone_number: str) -> str:
        """
        Normalize to the 11-digit 223XXXXXXXX form SAMA expects

        Accepts 8-digit local numbers, a leading 0, or an existing 223 prefix.
        """
        digits = digits_only(phone_number)
        if len(digits) == 9 and digits.startswith("0"):
            digits = digits[1:]
        if len(digits) == 8:
            digits = f"223{digits}"
        if not _FULL_NUMBER.match(digits):
            raise InvalidPaymentInputError(
                "Numéro SAMA Money invalide : 8 chiffres attendus (ex. 223XXXXXXXX)",
                code="INVALID_PHONE_NUMBER",
            )
        return digits

    async def _get_token(self, client: httpx.AsyncClient) -> str:
        response = await self._request(
            client,
            "POST",
            f"{self.base_url}/marchand/auth",
            data={"cmd": self.merchant_code, "cle_publique": self.public_key},
            headers={"TRANSAC": self.transac_header, "Accept": "application/json"},
        )
        data = self._parse_json(response)
        status = _as_int(data.get("status"))
        token = (data.get("resultat") or {}).get("token")
        if status != 1 or not token:
            logger.error(f"SAMA Money authentication failed with status {status}")
            raise GatewayRejectedError(sama_error_message(status), code=str(status))
        return token

    async def initiate_payment(self, request: PaymentRequest) -> PaymentInitiation:
        if not request.phone_number:
            raise InvalidPaymentInputError(
                "Le numéro de téléphone est requis pour SAMA Money", code="INVALID_PHONE_NUMBER"
            )
        phone = self.validate_phone(request.phone_number)

        async with self._client() as client:
            token = await self._get_token(client)
            response = await self._request(
                client,
                "POST",
                f"{self.base_url}/marchand/pay",
                data={
                    "cmd": self.merchant_code,
                    "idCommande": request.reference,
                    "phoneClient": phone,
                    "montant": str(int(request.amount)),
                    "description": request.description,
                    "tokenMarchand": token,
                    "url": self.callback_url,
                },
                headers={
                    "Authorization": f"Bearer {token}",
                    "TRANSAC": self.transac_header,
                    "Accept": "application/json",
                },
            )

        data = self._parse_json(response)
        status = _as_int(data.get("status"))
        if status != 1:
            logger.warning(f"SAMA Money refused payment {request.reference}: code {status}")
            raise GatewayRejectedError(sama_error_message(status), code=str(status))

        logger.info(f"SAMA Money payment {request.reference} sent for confirmation")
        return PaymentInitiation(
            transaction_id=request.reference,
            status=PaymentStatus.PENDING,
            external_transaction_id=data.get("transNumber"),
            message=CONFIRMATION_SENT_MESSAGE,
            raw=data,
        )

    async def check_status(self, transaction_id: str) -> PaymentStatusResult:
        async with self._client() as client:
            token = await self._get_token(client)
            response = await self._request(
                client,
                "GET",
                f"{self.base_url}/marchand/transaction/infos",
                params={"cmd": self.merchant_code, "idCommande": transaction_id},
                headers={
                    "Authorization": f"Bearer {token}",
                    "TRANSAC": self.transac_header,
                    "Accept": "application/json",
                },
            )

        data = self._parse_json(response)
        status = _as_int(data.get("status"))
        if status == 1:
            payment_status = PaymentStatus.COMPLETED
        elif status in _FAILED_CODES:
            payment_status = PaymentStatus.FAILED
        else:
            payment_status = PaymentStatus.PENDING

        amount = data.get("montant")
        return PaymentStatusResult(
            transaction_id=transaction_id,
            status=payment_status,
            external_transaction_id=data.get("numTransacSAMA"),
            amount=_as_int(amount) if amount is not None else None,
            message=None if status == 1 else sama_error_message(status),
            raw=data,
        )

    def parse_notification(self, payload: Dict[str, Any]) -> PaymentNotification:
        reference = payload.get("idCommande") or payload.get("reference") or payload.get("orderId")
        raw_status = payload.get("status")
        if raw_status is None:
            raw_status = payload.get("etat")
        return PaymentNotification(
            reference=reference,
            status=map_status_word(raw_status),
            raw=payload,
        )
