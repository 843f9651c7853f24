"""Unit tests for ActivateSubscription use case

Tests cover:
- Activation sets end date from the billing cycle and issues a card
- Idempotent replay returns the existing card
- Transition and uniqueness errors
- Lost race on the unique indexes
"""

import re
import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from src.app.repositories.errors import DuplicateRecordError
from src.app.use_cases.membership.activate_subscription import ActivateSubscription
from src.app.use_cases.membership.dtos import ActivateSubscriptionCommandDTO
from src.domain.membership_card import CardStatus
from src.domain.subscription import SubscriptionStatus
from tests.unit.use_cases.factories import (
    make_card,
    make_product,
    make_subscription,
    returns_argument,
)


@pytest.fixture
def mock_subscription_repo():
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=make_subscription())
    repo.get_active_for_user = AsyncMock(return_value=None)
    repo.update = AsyncMock(side_effect=returns_argument)
    return repo


@pytest.fixture
def mock_card_repo():
    repo = MagicMock()
    repo.get_by_subscription_id = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=returns_argument)
    return repo


@pytest.fixture
def mock_catalog_repo():
    repo = MagicMock()
    repo.get_product = AsyncMock(return_value=make_product())
    return repo


@pytest.fixture
def use_case(mock_uow, mock_subscription_repo, mock_card_repo, mock_catalog_repo, clock):
    return ActivateSubscription(
        uow=mock_uow,
        subscription_repo=mock_subscription_repo,
        card_repo=mock_card_repo,
        catalog_repo=mock_catalog_repo,
        clock=clock,
    )


@pytest.fixture
def command():
    return ActivateSubscriptionCommandDTO(subscription_id=12, payment_id="SUB_12_1715769000000")


@pytest.mark.asyncio
class TestActivateSubscriptionSuccess:

    async def test_activates_and_issues_card(
        self, use_case, command, mock_subscription_repo, mock_card_repo, mock_uow, fixed_now
    ):
        result = await use_case.execute(command)

        assert result.is_ok()
        response = result.value
        assert response.already_active is False

        subscription = response.subscription
        assert subscription.status == "active"
        assert subscription.end_date == datetime(2024, 8, 15, 10, 30, 0)
        assert subscription.activated_at == fixed_now
        assert subscription.payment_id == "SUB_12_1715769000000"

        card = response.card
        assert re.fullmatch(r"CARD-\d+-[A-Z0-9]{5}", card.card_identifier)
        assert card.card_expiry_date == subscription.end_date
        assert card.status == "active"
        assert card.holder_full_name == "Awa Traoré"
        assert card.qr_data["card"] == card.card_identifier
        assert card.qr_data["subscription_id"] == 12

        mock_subscription_repo.get_by_id.assert_called_once_with(12, for_update=True)
        mock_card_repo.create.assert_called_once()
        mock_uow.commit.assert_called_once()

    async def test_missing_cycle_defaults_to_twelve_months(
        self, use_case, command, mock_subscription_repo
    ):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription(cycle_months=None))

        result = await use_case.execute(command)

        assert result.is_ok()
        assert result.value.subscription.end_date == datetime(2025, 5, 15, 10, 30, 0)

    async def test_child_card_carries_child_name(self, use_case, command, mock_subscription_repo):
        subscription = make_subscription(is_child=True)
        subscription.child_name = "Moussa"
        mock_subscription_repo.get_by_id = AsyncMock(return_value=subscription)

        result = await use_case.execute(command)

        assert result.is_ok()
        assert result.value.card.holder_full_name == "Moussa"


@pytest.mark.asyncio
class TestActivateSubscriptionIdempotency:

    async def test_already_active_returns_existing_card(
        self, use_case, command, mock_subscription_repo, mock_card_repo, mock_uow
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(
                status=SubscriptionStatus.ACTIVE, end_date=datetime(2024, 8, 1, 9, 0)
            )
        )
        existing = make_card()
        mock_card_repo.get_by_subscription_id = AsyncMock(return_value=existing)

        result = await use_case.execute(command)

        assert result.is_ok()
        assert result.value.already_active is True
        assert result.value.card.card_identifier == existing.card_identifier
        mock_card_repo.create.assert_not_called()
        mock_uow.commit.assert_not_called()

    async def test_active_without_card_is_an_error(
        self, use_case, command, mock_subscription_repo
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(status=SubscriptionStatus.ACTIVE)
        )

        result = await use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "ALREADY_ACTIVE"

    async def test_lost_race_returns_winner_card(
        self, use_case, command, mock_subscription_repo, mock_card_repo, mock_uow
    ):
        active = make_subscription(status=SubscriptionStatus.ACTIVE, end_date=datetime(2024, 8, 1))
        mock_subscription_repo.get_by_id = AsyncMock(side_effect=[make_subscription(), active])
        mock_card_repo.create = AsyncMock(side_effect=DuplicateRecordError("membership_card", "subscription_id=12"))
        mock_card_repo.get_by_subscription_id = AsyncMock(return_value=make_card())

        result = await use_case.execute(command)

        assert result.is_ok()
        assert result.value.already_active is True
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
class TestActivateSubscriptionErrors:

    async def test_not_found(self, use_case, command, mock_subscription_repo):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=None)

        result = await use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "SUBSCRIPTION_NOT_FOUND"

    @pytest.mark.parametrize("status", [SubscriptionStatus.PAUSED, SubscriptionStatus.CANCELLED])
    async def test_only_pending_can_activate(self, use_case, command, mock_subscription_repo, status):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription(status=status))

        result = await use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "INVALID_TRANSITION"

    async def test_other_active_subscription_in_category(
        self, use_case, command, mock_subscription_repo, mock_card_repo
    ):
        mock_subscription_repo.get_active_for_user = AsyncMock(
            return_value=make_subscription(id=3, status=SubscriptionStatus.ACTIVE)
        )

        result = await use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "DUPLICATE_ACTIVE_SUBSCRIPTION"
        mock_card_repo.create.assert_not_called()

    async def test_unique_index_violation_on_subscription(
        self, use_case, command, mock_subscription_repo, mock_card_repo, mock_uow
    ):
        mock_subscription_repo.update = AsyncMock(
            side_effect=DuplicateRecordError("subscription", "user_id=user_1, is_child=False")
        )
        # Re-read after rollback: still pending, no card
        mock_subscription_repo.get_by_id = AsyncMock(side_effect=[make_subscription(), make_subscription()])

        result = await use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "DUPLICATE_ACTIVE_SUBSCRIPTION"
        mock_uow.rollback.assert_called_once()

    async def test_unexpected_failure_rolls_back(
        self, use_case, command, mock_card_repo, mock_uow
    ):
        mock_card_repo.create = AsyncMock(side_effect=Exception("connection reset"))

        result = await use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "ACTIVATE_SUBSCRIPTION_FAILED"
        mock_uow.rollback.assert_called_once()
