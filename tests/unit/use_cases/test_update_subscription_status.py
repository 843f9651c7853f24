"""Unit tests for UpdateSubscriptionStatus use case"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from src.app.repositories.errors import DuplicateRecordError
from src.app.use_cases.membership.dtos import UpdateStatusCommandDTO
from src.app.use_cases.membership.update_subscription_status import UpdateSubscriptionStatus
from src.domain.membership_card import CardStatus
from src.domain.subscription import SubscriptionStatus
from tests.unit.use_cases.factories import make_card, make_subscription, returns_argument

END_DATE = datetime(2024, 6, 1, 10, 30, 0)


@pytest.fixture
def card():
    return make_card(expiry=END_DATE)


@pytest.fixture
def mock_subscription_repo():
    repo = MagicMock()
    repo.get_by_id = AsyncMock(
        return_value=make_subscription(status=SubscriptionStatus.ACTIVE, end_date=END_DATE)
    )
    repo.update = AsyncMock(side_effect=returns_argument)
    return repo


@pytest.fixture
def mock_card_repo(card):
    repo = MagicMock()
    repo.get_by_subscription_id = AsyncMock(return_value=card)
    repo.update = AsyncMock(side_effect=returns_argument)
    return repo


@pytest.fixture
def use_case(mock_uow, mock_subscription_repo, mock_card_repo, clock):
    return UpdateSubscriptionStatus(
        uow=mock_uow,
        subscription_repo=mock_subscription_repo,
        card_repo=mock_card_repo,
        clock=clock,
    )


def command(status, user_id="user_1"):
    return UpdateStatusCommandDTO(subscription_id=12, new_status=status, requesting_user_id=user_id)


@pytest.mark.asyncio
class TestPauseResumeCancel:

    async def test_pause_deactivates_card(self, use_case, card, mock_uow, fixed_now):
        """
        Given an active subscription with an active card
        When the owner pauses it
        Then paused_at is recorded and the card becomes inactive
        """
        result = await use_case.execute(command(SubscriptionStatus.PAUSED))

        assert result.is_ok()
        assert result.value.status == "paused"
        assert result.value.paused_at == fixed_now
        assert result.value.status_updated_at == fixed_now
        assert result.value.end_date == END_DATE
        assert card.status == CardStatus.INACTIVE
        mock_uow.commit.assert_called_once()

    async def test_resume_carries_remaining_time(
        self, use_case, card, mock_subscription_repo, fixed_now
    ):
        """
        Given a subscription paused 5 days ago with 22 days left at pause time
        When the owner resumes it
        Then the 22 days run again from now and the card follows the new expiry
        """
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(
                status=SubscriptionStatus.PAUSED,
                end_date=END_DATE,
                paused_at=datetime(2024, 5, 10, 10, 30, 0),
            )
        )
        card.status = CardStatus.INACTIVE

        result = await use_case.execute(command(SubscriptionStatus.ACTIVE))

        assert result.is_ok()
        assert result.value.status == "active"
        assert result.value.end_date == datetime(2024, 6, 6, 10, 30, 0)
        assert result.value.reactivated_at == fixed_now
        assert card.status == CardStatus.ACTIVE
        assert card.card_expiry_date == datetime(2024, 6, 6, 10, 30, 0)

    async def test_cancel_ends_now(self, use_case, card, fixed_now):
        result = await use_case.execute(command(SubscriptionStatus.CANCELLED))

        assert result.is_ok()
        assert result.value.status == "cancelled"
        assert result.value.end_date == fixed_now
        assert result.value.cancelled_at == fixed_now
        assert card.status == CardStatus.INACTIVE

    async def test_cancel_paused_subscription(self, use_case, mock_subscription_repo):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(status=SubscriptionStatus.PAUSED, end_date=END_DATE)
        )

        result = await use_case.execute(command(SubscriptionStatus.CANCELLED))

        assert result.is_ok()
        assert result.value.status == "cancelled"

    async def test_without_card_only_updates_subscription(
        self, use_case, mock_card_repo
    ):
        mock_card_repo.get_by_subscription_id = AsyncMock(return_value=None)

        result = await use_case.execute(command(SubscriptionStatus.PAUSED))

        assert result.is_ok()
        assert result.value.card is None
        mock_card_repo.update.assert_not_called()

    async def test_same_status_is_noop(self, use_case, mock_subscription_repo, mock_uow):
        result = await use_case.execute(command(SubscriptionStatus.ACTIVE))

        assert result.is_ok()
        assert result.value.status == "active"
        mock_subscription_repo.update.assert_not_called()
        mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
class TestStatusUpdateErrors:

    async def test_not_found(self, use_case, mock_subscription_repo):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=None)

        result = await use_case.execute(command(SubscriptionStatus.PAUSED))

        assert result.is_err()
        assert result.error.code == "SUBSCRIPTION_NOT_FOUND"

    async def test_other_user_is_rejected(self, use_case, mock_subscription_repo):
        result = await use_case.execute(command(SubscriptionStatus.PAUSED, user_id="intruder"))

        assert result.is_err()
        assert result.error.code == "UNAUTHORIZED"
        mock_subscription_repo.update.assert_not_called()

    @pytest.mark.parametrize(
        "current,target",
        [
            (SubscriptionStatus.CANCELLED, SubscriptionStatus.ACTIVE),
            (SubscriptionStatus.CANCELLED, SubscriptionStatus.PAUSED),
            (SubscriptionStatus.PENDING, SubscriptionStatus.PAUSED),
            (SubscriptionStatus.PENDING, SubscriptionStatus.ACTIVE),
        ],
    )
    async def test_invalid_transitions(self, use_case, mock_subscription_repo, current, target):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription(status=current))

        result = await use_case.execute(command(target))

        assert result.is_err()
        assert result.error.code == "INVALID_TRANSITION"

    async def test_resume_conflicts_with_other_active(
        self, use_case, mock_subscription_repo, mock_uow
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(status=SubscriptionStatus.PAUSED, end_date=END_DATE)
        )
        mock_subscription_repo.update = AsyncMock(
            side_effect=DuplicateRecordError("subscription", "user_id=user_1")
        )

        result = await use_case.execute(command(SubscriptionStatus.ACTIVE))

        assert result.is_err()
        assert result.error.code == "DUPLICATE_ACTIVE_SUBSCRIPTION"
        mock_uow.rollback.assert_called_once()

    async def test_unexpected_failure_rolls_back(self, use_case, mock_card_repo, mock_uow):
        mock_card_repo.update = AsyncMock(side_effect=Exception("deadlock"))

        result = await use_case.execute(command(SubscriptionStatus.PAUSED))

        assert result.is_err()
        assert result.error.code == "UPDATE_STATUS_FAILED"
        mock_uow.rollback.assert_called_once()
