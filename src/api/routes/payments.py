"""Payments API Routes

Payment initiation, status verification (polled by the client) and gateway
webhooks.
"""

import json
import logging
from typing import Dict
from urllib.parse import parse_qsl
from fastapi import APIRouter, Depends, Request, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.payment_request import (
    InitiatePaymentRequestSchema,
    VerifyPaymentRequestSchema,
)
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.payments import (
    InitiateSubscriptionPayment,
    HandlePaymentNotification,
    InitiatePaymentCommandDTO,
    PaymentResponseDTO,
    VerifyPaymentCommandDTO,
    VerifyPaymentResponseDTO,
    NotificationAckDTO,
)
from src.adapter.repositories import (
    SqlAlchemySubscriptionRepository,
    SqlAlchemyMembershipCatalogRepository,
    SqlAlchemyPaymentRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.payment import PaymentMethod
from src.depends import get_session, get_payment_gateways, build_verify_payment
from src.api.error import raise_client_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/initiate",
    response_model=PaymentResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "description": "Invalid phone number or payment method",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVALID_PHONE_NUMBER",
                            "message": "Numéro de téléphone invalide"
                        }
                    }
                }
            }
        },
        502: {
            "description": "Gateway refused the payment",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "GATEWAY_REJECTED",
                            "message": "Le paiement a été refusé par l'opérateur"
                        }
                    }
                }
            }
        },
        503: {
            "description": "Gateway unreachable or not configured",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "GATEWAY_UNAVAILABLE",
                            "message": "Service de paiement indisponible"
                        }
                    }
                }
            }
        }
    }
)
async def initiate_payment(
    request: InitiatePaymentRequestSchema,
    session: AsyncSession = Depends(get_session),
    gateways: Dict[PaymentMethod, PaymentGateway] = Depends(get_payment_gateways),
):
    """
    Start paying for a pending subscription.

    The amount comes from the catalog: purchase price plus fee, or the
    renewal price when the user held this membership before.

    **Request body:**
    - `subscription_id` (required): Pending subscription
    - `user_id` (required): Paying user, must own the subscription
    - `payment_method` (required): `orange_money`, `sama_money` or `cinetpay`
    - `phone_number`: Required for Orange Money and SAMA Money

    **Returns:**
    - 201: Payment created. Redirect to `payment_url` when present, then
      poll `/payments/verify` with `{"paymentId": payment_id}`
    - 400: Invalid input
    - 502/503: Gateway error
    """
    uow = SqlAlchemyUnitOfWork(session)
    command = InitiatePaymentCommandDTO(
        subscription_id=request.subscription_id,
        user_id=request.user_id,
        payment_method=request.payment_method,
        phone_number=request.phone_number,
        customer_name=request.customer_name,
        customer_email=request.customer_email,
        customer_city=request.customer_city,
        return_url=request.return_url,
    )

    use_case = InitiateSubscriptionPayment(
        uow,
        SqlAlchemySubscriptionRepository(session),
        SqlAlchemyMembershipCatalogRepository(session),
        SqlAlchemyPaymentRepository(session),
        gateways,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_client_error(result.error)

    return result.value


@router.post(
    "/verify",
    response_model=VerifyPaymentResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def verify_payment(
    request: VerifyPaymentRequestSchema,
    session: AsyncSession = Depends(get_session),
    gateways: Dict[PaymentMethod, PaymentGateway] = Depends(get_payment_gateways),
):
    """
    Report the status of a payment.

    Polled every few seconds by the payment status poller until the status
    is `completed`, `failed` or `cancelled`. When the gateway reports a
    final status the payment is reconciled first: a completed membership
    payment activates the subscription and issues the card, a completed
    token payment credits the balance.

    Unknown payments and gateway hiccups answer `pending`.
    """
    use_case = build_verify_payment(session, gateways)
    result = await use_case.execute(
        VerifyPaymentCommandDTO(payment_id=request.payment_id, gateway=request.gateway)
    )

    if result.is_err():
        raise_client_error(result.error)

    return result.value


@router.post(
    "/webhooks/{gateway}",
    response_model=NotificationAckDTO,
    status_code=status.HTTP_200_OK,
)
async def payment_webhook(
    gateway: str,
    request: Request,
    session: AsyncSession = Depends(get_session),
    gateways: Dict[PaymentMethod, PaymentGateway] = Depends(get_payment_gateways),
):
    """
    Receive a gateway notification (JSON or form encoded).

    The status in the notification is not trusted: the payment is verified
    with the gateway before anything changes. Always answers 200 so the
    gateway stops retrying.
    """
    payload = await _read_payload(request)
    use_case = HandlePaymentNotification(gateways, build_verify_payment(session, gateways))
    result = await use_case.execute(gateway, payload)

    if result.is_err():
        raise_client_error(result.error)

    return result.value


async def _read_payload(request: Request) -> dict:
    body = await request.body()
    if not body:
        return {}

    content_type = request.headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in content_type:
        return dict(parse_qsl(body.decode("utf-8"), keep_blank_values=True))

    try:
        payload = json.loads(body)
    except ValueError:
        logger.warning(f"Webhook body is neither JSON nor form data ({content_type})")
        return {}
    return payload if isinstance(payload, dict) else {}
