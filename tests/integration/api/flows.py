"""Request sequences shared by the API integration tests"""

from httpx import AsyncClient

from src.domain.payment import PaymentMethod, PaymentStatus


async def pay_for_subscription(
    client: AsyncClient,
    gateways: dict,
    subscription_id: int,
    user_id: str,
) -> dict:
    """Initiate an Orange Money payment, let the gateway confirm it and verify

    Returns the verify response, which carries the issued card identifier.
    """
    initiated = await client.post(
        "/api/payments/initiate",
        json={
            "subscription_id": subscription_id,
            "user_id": user_id,
            "payment_method": "orange_money",
            "phone_number": "76123456",
        },
    )
    assert initiated.status_code == 201, initiated.text
    payment_id = initiated.json()["payment_id"]

    gateways[PaymentMethod.ORANGE_MONEY].statuses[payment_id] = PaymentStatus.COMPLETED
    verified = await client.post(
        "/api/payments/verify", json={"paymentId": payment_id, "gateway": "orange_money"}
    )
    assert verified.status_code == 200, verified.text
    assert verified.json()["status"] == "completed", verified.text
    return verified.json()
