"""Helpers shared by use cases that call payment gateways"""

from typing import Dict, Optional, Tuple
from libs.result import Error
from src.app.services.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    GatewayNetworkError,
    InvalidPaymentInputError,
)
from src.domain.payment import PaymentMethod

# Push-payment gateways cannot reach the payer without a number
PHONE_REQUIRED_METHODS = {PaymentMethod.ORANGE_MONEY, PaymentMethod.SAMA_MONEY}


def gateway_error(exc: PaymentGatewayError) -> Error:
    """Translate a gateway exception into a use case Error"""
    if isinstance(exc, InvalidPaymentInputError):
        return Error(
            code=exc.code or "INVALID_PAYMENT_INPUT",
            message=exc.message,
            reason="Rejected by local validation before contacting the gateway",
        )
    if isinstance(exc, GatewayNetworkError):
        return Error(
            code="GATEWAY_UNAVAILABLE",
            message=exc.message,
            reason=f"Gateway unreachable ({exc.code})",
        )
    return Error(
        code="GATEWAY_REJECTED",
        message=exc.message,
        reason=f"Gateway refused the request (provider code {exc.code})",
    )


def resolve_gateway(
    gateways: Dict[PaymentMethod, PaymentGateway],
    method: PaymentMethod,
    phone_number: Optional[str],
) -> Tuple[Optional[PaymentGateway], Optional[str], Optional[Error]]:
    """
    Pick the gateway for a method and normalize the payer's phone number

    Returns:
        (gateway, normalized phone, error); error is set when the payment
        must not be attempted
    """
    gateway = gateways.get(method)
    if gateway is None:
        return None, None, Error(
            code="GATEWAY_NOT_CONFIGURED",
            message="Ce moyen de paiement n'est pas disponible pour le moment",
            reason=f"No gateway configured for {method.value}",
        )

    if not phone_number:
        if method in PHONE_REQUIRED_METHODS:
            return None, None, Error(
                code="INVALID_PHONE_NUMBER",
                message="Le numéro de téléphone est requis pour ce moyen de paiement",
                reason=f"{method.value} requires a phone number",
            )
        return gateway, None, None

    try:
        return gateway, gateway.validate_phone(phone_number), None
    except InvalidPaymentInputError as e:
        return None, None, gateway_error(e)
