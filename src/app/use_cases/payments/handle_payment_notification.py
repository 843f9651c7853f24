"""HandlePaymentNotification Use Case

Server-side completion path: gateways call back here, and the payment is
re-verified with the gateway before anything changes.
"""

import logging
from typing import Any, Dict
from libs.result import Result, Return
from src.app.services.payment_gateway import PaymentGateway
from src.domain.payment import PaymentMethod
from .dtos import NotificationAckDTO, VerifyPaymentCommandDTO
from .verify_payment import VerifyPayment

logger = logging.getLogger(__name__)


class HandlePaymentNotification:
    """
    Use Case: Process a gateway webhook

    Business Rules:
    1. The status claimed in the payload is not trusted; VerifyPayment asks the gateway
    2. The result is always an acknowledgement so the gateway stops retrying;
       problems are logged and reported in `detail`
    """

    def __init__(
        self,
        gateways: Dict[PaymentMethod, PaymentGateway],
        verify_payment: VerifyPayment,
    ):
        self.gateways = gateways
        self.verify_payment = verify_payment

    async def execute(self, gateway_name: str, payload: Dict[str, Any]) -> Result[NotificationAckDTO]:
        try:
            method = PaymentMethod(gateway_name)
        except ValueError:
            logger.warning(f"Notification for unknown gateway {gateway_name}")
            return Return.ok(NotificationAckDTO(detail="unknown gateway"))

        gateway = self.gateways.get(method)
        if gateway is None:
            logger.warning(f"Notification for unconfigured gateway {gateway_name}")
            return Return.ok(NotificationAckDTO(detail="gateway not configured"))

        try:
            notification = gateway.parse_notification(payload or {})
        except Exception as e:
            logger.error(f"Unreadable {gateway_name} notification: {e}")
            return Return.ok(NotificationAckDTO(detail="unreadable payload"))

        if not notification.reference:
            logger.warning(f"{gateway_name} notification without reference: {payload}")
            return Return.ok(NotificationAckDTO(detail="missing reference"))

        logger.info(
            f"{gateway_name} notification for {notification.reference} "
            f"(claimed {notification.status.value})"
        )
        verified = await self.verify_payment.execute(
            VerifyPaymentCommandDTO(payment_id=notification.reference, gateway=gateway_name)
        )
        if verified.is_err():
            logger.error(
                f"Verification after notification failed for {notification.reference}: "
                f"{verified.error.code} {verified.error.reason}"
            )
            return Return.ok(
                NotificationAckDTO(payment_id=notification.reference, detail=verified.error.code)
            )

        return Return.ok(
            NotificationAckDTO(
                payment_id=notification.reference,
                status=verified.value.status,
            )
        )
