"""Ô Secours API Routes

Token purchases, balance and transaction history for emergency assistance
subscriptions.
"""

from typing import Dict, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.secours_request import PurchaseTokensRequestSchema
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.secours import (
    PurchaseTokens,
    GetTokenBalance,
    ListTokenTransactions,
    PurchaseTokensCommandDTO,
    TokenPurchaseResponseDTO,
    TokenBalanceResponseDTO,
    ListTokenTransactionsResponseDTO,
)
from src.adapter.repositories import (
    SqlAlchemySubscriptionRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemySecoursSubscriptionRepository,
    SqlAlchemySecoursTransactionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.payment import PaymentMethod
from src.depends import get_session, get_payment_gateways
from src.api.error import raise_client_error

router = APIRouter(prefix="/secours/subscriptions", tags=["Ô Secours"])


@router.post(
    "/{subscription_id}/purchase",
    response_model=TokenPurchaseResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        422: {
            "description": "Monthly purchase limits",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "MONTHLY_LIMIT_EXCEEDED",
                            "message": "Limite mensuelle de 60 jetons dépassée"
                        }
                    }
                }
            }
        },
        403: {
            "description": "Membership tier not eligible",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "CHILD_TIER_NOT_ELIGIBLE",
                            "message": "Les abonnements enfants ne donnent pas accès à Ô Secours"
                        }
                    }
                }
            }
        }
    }
)
async def purchase_tokens(
    subscription_id: int,
    request: PurchaseTokensRequestSchema,
    session: AsyncSession = Depends(get_session),
    gateways: Dict[PaymentMethod, PaymentGateway] = Depends(get_payment_gateways),
):
    """
    Buy Ô Secours tokens.

    Purchases must stay within 10 to 60 tokens per calendar month and
    require an active adult membership. Cash purchases are credited
    immediately; gateway purchases are credited once the payment completes
    (poll `/payments/verify` with `payment_reference`).

    **Request body:**
    - `user_id` (required): Subscription owner
    - `token_amount` (required): Tokens to buy
    - `payment_method` (required): `orange_money`, `sama_money`, `cinetpay` or `cash`
    - `phone_number`: Required for Orange Money and SAMA Money

    **Returns:**
    - 201: Purchase recorded
    - 403: Not the owner, or child membership
    - 404: Unknown Ô Secours subscription
    - 422: Below minimum, monthly limit exceeded, or no active membership
    """
    uow = SqlAlchemyUnitOfWork(session)
    command = PurchaseTokensCommandDTO(
        subscription_id=subscription_id,
        user_id=request.user_id,
        token_amount=request.token_amount,
        payment_method=request.payment_method,
        phone_number=request.phone_number,
        customer_name=request.customer_name,
        customer_email=request.customer_email,
    )

    use_case = PurchaseTokens(
        uow,
        SqlAlchemySecoursSubscriptionRepository(session),
        SqlAlchemySecoursTransactionRepository(session),
        SqlAlchemySubscriptionRepository(session),
        SqlAlchemyPaymentRepository(session),
        gateways,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_client_error(result.error)

    return result.value


@router.get(
    "/{subscription_id}/balance",
    response_model=TokenBalanceResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def get_token_balance(
    subscription_id: int,
    user_id: Optional[str] = Query(default=None, description="Requesting user"),
    session: AsyncSession = Depends(get_session),
):
    """
    Token balance, its value in FCFA and this month's purchase allowance.
    """
    use_case = GetTokenBalance(
        SqlAlchemySecoursSubscriptionRepository(session),
        SqlAlchemySecoursTransactionRepository(session),
    )
    result = await use_case.execute(subscription_id, requesting_user_id=user_id)

    if result.is_err():
        raise_client_error(result.error)

    return result.value


@router.get(
    "/{subscription_id}/transactions",
    response_model=ListTokenTransactionsResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_token_transactions(
    subscription_id: int,
    user_id: Optional[str] = Query(default=None, description="Requesting user"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """
    Token purchase history, newest first.
    """
    use_case = ListTokenTransactions(
        SqlAlchemySecoursSubscriptionRepository(session),
        SqlAlchemySecoursTransactionRepository(session),
    )
    result = await use_case.execute(
        subscription_id, limit=limit, offset=offset, requesting_user_id=user_id
    )

    if result.is_err():
        raise_client_error(result.error)

    return result.value
