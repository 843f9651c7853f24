"""Unit tests for card rendering, card expiry and subscription listing"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.membership.dtos import RenderCardCommandDTO
from src.app.use_cases.membership.expire_membership_cards import ExpireMembershipCards
from src.app.use_cases.membership.get_user_subscriptions import GetUserSubscriptions
from src.app.use_cases.membership.render_membership_card import RenderMembershipCard
from src.domain.membership_card import CardStatus
from src.domain.subscription import SubscriptionStatus
from tests.unit.use_cases.factories import make_card, make_subscription, returns_argument


@pytest.fixture
def mock_subscription_repo():
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=make_subscription(status=SubscriptionStatus.ACTIVE))
    repo.list_by_user = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_card_repo():
    repo = MagicMock()
    repo.get_by_subscription_id = AsyncMock(return_value=make_card())
    repo.list_by_subscription_ids = AsyncMock(return_value=[])
    repo.list_expired_active = AsyncMock(return_value=[])
    repo.update = AsyncMock(side_effect=returns_argument)
    return repo


@pytest.fixture
def mock_document_service():
    service = MagicMock()
    service.render_card = MagicMock(return_value=b"%PDF-1.4 card")
    return service


@pytest.mark.asyncio
class TestRenderMembershipCard:

    @pytest.fixture
    def use_case(self, mock_subscription_repo, mock_card_repo, mock_document_service):
        return RenderMembershipCard(
            mock_subscription_repo,
            mock_card_repo,
            mock_document_service,
            organization_name="Elverra Global",
        )

    async def test_renders_owner_card(self, use_case, mock_document_service):
        result = await use_case.execute(RenderCardCommandDTO(subscription_id=12, requesting_user_id="user_1"))

        assert result.is_ok()
        assert result.value.filename == "CARD-1714554000000-ABCDE.pdf"
        assert result.value.content.startswith(b"%PDF")
        _, kwargs = mock_document_service.render_card.call_args
        assert kwargs["organization_name"] == "Elverra Global"

    async def test_other_user_is_rejected(self, use_case, mock_document_service):
        result = await use_case.execute(RenderCardCommandDTO(subscription_id=12, requesting_user_id="user_2"))

        assert result.is_err()
        assert result.error.code == "UNAUTHORIZED"
        mock_document_service.render_card.assert_not_called()

    async def test_pending_subscription_has_no_card(self, use_case, mock_card_repo):
        mock_card_repo.get_by_subscription_id = AsyncMock(return_value=None)

        result = await use_case.execute(RenderCardCommandDTO(subscription_id=12, requesting_user_id="user_1"))

        assert result.is_err()
        assert result.error.code == "CARD_NOT_FOUND"

    async def test_unknown_subscription(self, use_case, mock_subscription_repo):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=None)

        result = await use_case.execute(RenderCardCommandDTO(subscription_id=404, requesting_user_id="user_1"))

        assert result.is_err()
        assert result.error.code == "SUBSCRIPTION_NOT_FOUND"


@pytest.mark.asyncio
class TestExpireMembershipCards:

    async def test_expires_overdue_cards(self, mock_uow, mock_card_repo, clock, fixed_now):
        overdue = [make_card(), make_card(subscription_id=13)]
        overdue[1].card_identifier = "CARD-1714554000000-ZZZZZ"
        mock_card_repo.list_expired_active = AsyncMock(return_value=overdue)
        use_case = ExpireMembershipCards(mock_uow, mock_card_repo, clock=clock, batch_size=50)

        result = await use_case.execute()

        assert result.is_ok()
        assert result.value.expired_count == 2
        assert result.value.card_identifiers == [
            "CARD-1714554000000-ABCDE",
            "CARD-1714554000000-ZZZZZ",
        ]
        assert all(card.status == CardStatus.EXPIRED for card in overdue)
        mock_card_repo.list_expired_active.assert_called_once_with(fixed_now, limit=50)
        mock_uow.commit.assert_called_once()

    async def test_nothing_to_expire(self, mock_uow, mock_card_repo, clock):
        result = await ExpireMembershipCards(mock_uow, mock_card_repo, clock=clock).execute()

        assert result.is_ok()
        assert result.value.expired_count == 0
        mock_card_repo.update.assert_not_called()

    async def test_failure_rolls_back(self, mock_uow, mock_card_repo, clock):
        mock_card_repo.list_expired_active = AsyncMock(return_value=[make_card()])
        mock_card_repo.update = AsyncMock(side_effect=Exception("lock timeout"))

        result = await ExpireMembershipCards(mock_uow, mock_card_repo, clock=clock).execute()

        assert result.is_err()
        assert result.error.code == "EXPIRE_CARDS_FAILED"
        mock_uow.rollback.assert_called_once()


@pytest.mark.asyncio
class TestGetUserSubscriptions:

    async def test_attaches_cards(self, mock_subscription_repo, mock_card_repo):
        mock_subscription_repo.list_by_user = AsyncMock(
            return_value=[
                make_subscription(id=13),
                make_subscription(id=12, status=SubscriptionStatus.ACTIVE, end_date=datetime(2024, 8, 1)),
            ]
        )
        mock_card_repo.list_by_subscription_ids = AsyncMock(return_value=[make_card(subscription_id=12)])

        result = await GetUserSubscriptions(mock_subscription_repo, mock_card_repo).execute("user_1")

        assert result.is_ok()
        pending, active = result.value.subscriptions
        assert pending.card is None
        assert active.card.card_identifier == "CARD-1714554000000-ABCDE"
        mock_card_repo.list_by_subscription_ids.assert_called_once_with([13, 12])

    async def test_requires_user_id(self, mock_subscription_repo, mock_card_repo):
        result = await GetUserSubscriptions(mock_subscription_repo, mock_card_repo).execute("")

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
