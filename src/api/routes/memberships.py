"""Membership API Routes

FastAPI routes for the membership catalog, subscription lifecycle and
membership card documents.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.membership_request import (
    CreateSubscriptionRequestSchema,
    UpdateStatusRequestSchema,
)
from src.app.services.cache_service import CacheService
from src.app.use_cases.membership import (
    CreatePendingSubscription,
    UpdateSubscriptionStatus,
    GetAvailableProducts,
    GetUserSubscriptions,
    RenderMembershipCard,
    CreateSubscriptionCommandDTO,
    UpdateStatusCommandDTO,
    RenderCardCommandDTO,
    SubscriptionResponseDTO,
    UserSubscriptionsResponseDTO,
    CatalogResponseDTO,
)
from src.adapter.repositories import (
    SqlAlchemySubscriptionRepository,
    SqlAlchemyMembershipCardRepository,
    SqlAlchemyMembershipCatalogRepository,
)
from src.adapter.services.card_pdf_service import ReportLabCardDocumentService
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session, get_cache_service, get_config
from src.api.error import raise_client_error

router = APIRouter(prefix="/memberships", tags=["Memberships"])


def _error_example(code: str, message: str, description: str) -> dict:
    return {
        "description": description,
        "content": {
            "application/json": {
                "example": {"error": {"code": code, "message": message}}
            }
        },
    }


@router.get(
    "/products",
    response_model=CatalogResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_products(
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
    config=Depends(get_config),
):
    """
    List active membership products with their pricing and billing cycles.

    The catalog is cached (`CATALOG_CACHE_TTL_SECONDS`); `cached` tells
    whether this response came from the cache.

    **Returns:**
    - 200: Products (adult Essential/Premium/Elite, child) and cycles
    """
    use_case = GetAvailableProducts(
        SqlAlchemyMembershipCatalogRepository(session),
        cache,
        ttl_seconds=config.CATALOG_CACHE_TTL_SECONDS,
    )
    result = await use_case.execute()

    if result.is_err():
        raise_client_error(result.error)

    return result.value


@router.post(
    "/subscriptions",
    response_model=SubscriptionResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: _error_example("PRODUCT_NOT_FOUND", "Produit introuvable", "Unknown or inactive product"),
        409: _error_example(
            "DUPLICATE_ACTIVE_SUBSCRIPTION",
            "Vous avez déjà un abonnement actif dans cette catégorie",
            "User already has an active membership in this category",
        ),
    },
)
async def create_subscription(
    request: CreateSubscriptionRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Start a membership purchase.

    Creates a **pending** subscription. It becomes active only once its
    payment is confirmed (see `/payments/initiate` and `/payments/verify`).

    **Request body:**
    - `user_id` (required): Subscribing user
    - `product_id` (required): Membership product
    - `cycle_months` (optional): 1, 3, 6 or 12 (default 1)
    - `holder_full_name` (required): Name printed on the card
    - `holder_city`, `holder_neighborhood` (optional)
    - `is_child`, `child_name`, `child_birthdate` (child memberships)

    **Returns:**
    - 201: Pending subscription
    - 404: Product not found
    - 409: An active membership already exists in this category
    """
    uow = SqlAlchemyUnitOfWork(session)
    subscription_repo = SqlAlchemySubscriptionRepository(session)
    catalog_repo = SqlAlchemyMembershipCatalogRepository(session)

    command = CreateSubscriptionCommandDTO(
        user_id=request.user_id,
        product_id=request.product_id,
        cycle_months=request.cycle_months,
        is_child=request.is_child,
        holder_full_name=request.holder_full_name,
        holder_city=request.holder_city,
        holder_neighborhood=request.holder_neighborhood,
        child_name=request.child_name,
        child_birthdate=request.child_birthdate,
        metadata=request.metadata,
    )

    use_case = CreatePendingSubscription(uow, subscription_repo, catalog_repo)
    result = await use_case.execute(command)

    if result.is_err():
        raise_client_error(result.error)

    return result.value


@router.get(
    "/subscriptions",
    response_model=UserSubscriptionsResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_subscriptions(
    user_id: str = Query(..., min_length=1, description="User whose subscriptions to list"),
    session: AsyncSession = Depends(get_session),
):
    """
    List a user's subscriptions, newest first, each with its card if issued.
    """
    use_case = GetUserSubscriptions(
        SqlAlchemySubscriptionRepository(session),
        SqlAlchemyMembershipCardRepository(session),
    )
    result = await use_case.execute(user_id)

    if result.is_err():
        raise_client_error(result.error)

    return result.value


@router.patch(
    "/subscriptions/{subscription_id}/status",
    response_model=SubscriptionResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        403: _error_example("UNAUTHORIZED", "Accès non autorisé", "Caller does not own the subscription"),
        409: _error_example(
            "INVALID_TRANSITION",
            "Changement de statut impossible",
            "Transition not allowed from the current status",
        ),
    },
)
async def update_subscription_status(
    subscription_id: int,
    request: UpdateStatusRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Pause, resume or cancel a subscription.

    **Allowed transitions:**
    - active → paused, cancelled
    - paused → active (remaining time is carried over), cancelled

    The membership card follows the subscription status.
    """
    uow = SqlAlchemyUnitOfWork(session)
    use_case = UpdateSubscriptionStatus(
        uow,
        SqlAlchemySubscriptionRepository(session),
        SqlAlchemyMembershipCardRepository(session),
    )
    result = await use_case.execute(
        UpdateStatusCommandDTO(
            subscription_id=subscription_id,
            new_status=request.status,
            requesting_user_id=request.user_id,
        )
    )

    if result.is_err():
        raise_client_error(result.error)

    return result.value


@router.get(
    "/subscriptions/{subscription_id}/card.pdf",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "Membership card PDF"},
        404: _error_example("CARD_NOT_FOUND", "Carte de membre introuvable", "No card issued yet"),
    },
)
async def download_membership_card(
    subscription_id: int,
    user_id: str = Query(..., min_length=1, description="Requesting user"),
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """
    Download the membership card as PDF (card details and QR code).
    """
    use_case = RenderMembershipCard(
        SqlAlchemySubscriptionRepository(session),
        SqlAlchemyMembershipCardRepository(session),
        ReportLabCardDocumentService(),
        organization_name=config.ORGANIZATION_NAME,
    )
    result = await use_case.execute(
        RenderCardCommandDTO(subscription_id=subscription_id, requesting_user_id=user_id)
    )

    if result.is_err():
        raise_client_error(result.error)

    document = result.value
    return Response(
        content=document.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )
