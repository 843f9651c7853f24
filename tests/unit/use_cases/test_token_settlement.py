"""Unit tests for ConfirmTokenPayment, GetTokenBalance and ListTokenTransactions"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.secours.confirm_token_payment import ConfirmTokenPayment
from src.app.use_cases.secours.dtos import ConfirmTokenPaymentCommandDTO
from src.app.use_cases.secours.get_token_balance import GetTokenBalance
from src.app.use_cases.secours.list_token_transactions import ListTokenTransactions
from src.domain.secours_transaction import SecoursPaymentStatus
from tests.unit.use_cases.factories import (
    make_secours_account,
    make_token_transaction,
    returns_argument,
)


@pytest.fixture
def account():
    return make_secours_account(balance=12)


@pytest.fixture
def transaction():
    return make_token_transaction(token_amount=20)


@pytest.fixture
def mock_secours_subscription_repo(account):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=account)
    repo.update = AsyncMock(side_effect=returns_argument)
    return repo


@pytest.fixture
def mock_secours_transaction_repo(transaction):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=transaction)
    repo.update = AsyncMock(side_effect=returns_argument)
    repo.sum_purchased_tokens = AsyncMock(return_value=20)
    repo.list_by_subscription = AsyncMock(return_value=([transaction], 1))
    return repo


@pytest.mark.asyncio
class TestConfirmTokenPayment:

    @pytest.fixture
    def use_case(self, mock_uow, mock_secours_subscription_repo, mock_secours_transaction_repo, clock):
        return ConfirmTokenPayment(
            mock_uow, mock_secours_subscription_repo, mock_secours_transaction_repo, clock=clock
        )

    async def test_success_credits_balance(self, use_case, account, transaction, mock_uow, fixed_now):
        result = await use_case.execute(ConfirmTokenPaymentCommandDTO(transaction_id=31, succeeded=True))

        assert result.is_ok()
        assert result.value.credited is True
        assert result.value.token_balance == 32
        assert result.value.transaction.payment_status == "completed"
        assert transaction.completed_at == fixed_now
        assert account.last_token_purchase_date == fixed_now
        mock_uow.commit.assert_called_once()

    async def test_replay_does_not_credit_twice(self, use_case, transaction, mock_secours_subscription_repo):
        transaction.payment_status = SecoursPaymentStatus.COMPLETED

        result = await use_case.execute(ConfirmTokenPaymentCommandDTO(transaction_id=31, succeeded=True))

        assert result.is_ok()
        assert result.value.credited is False
        assert result.value.token_balance == 12
        mock_secours_subscription_repo.update.assert_not_called()

    async def test_failure_leaves_balance(self, use_case, transaction, mock_secours_subscription_repo):
        result = await use_case.execute(
            ConfirmTokenPaymentCommandDTO(transaction_id=31, succeeded=False, failure_reason="expired")
        )

        assert result.is_ok()
        assert result.value.credited is False
        assert result.value.token_balance == 12
        assert transaction.payment_status == SecoursPaymentStatus.FAILED
        mock_secours_subscription_repo.update.assert_not_called()

    async def test_late_success_after_failure_is_credited(self, use_case, transaction):
        transaction.payment_status = SecoursPaymentStatus.FAILED

        result = await use_case.execute(ConfirmTokenPaymentCommandDTO(transaction_id=31, succeeded=True))

        assert result.is_ok()
        assert result.value.credited is True
        assert result.value.token_balance == 32

    async def test_unknown_transaction(self, use_case, mock_secours_transaction_repo):
        mock_secours_transaction_repo.get_by_id = AsyncMock(return_value=None)

        result = await use_case.execute(ConfirmTokenPaymentCommandDTO(transaction_id=404, succeeded=True))

        assert result.is_err()
        assert result.error.code == "TOKEN_TRANSACTION_NOT_FOUND"

    async def test_failure_rolls_back(self, use_case, mock_secours_subscription_repo, mock_uow):
        mock_secours_subscription_repo.update = AsyncMock(side_effect=Exception("deadlock"))

        result = await use_case.execute(ConfirmTokenPaymentCommandDTO(transaction_id=31, succeeded=True))

        assert result.is_err()
        assert result.error.code == "CONFIRM_TOKEN_PAYMENT_FAILED"
        mock_uow.rollback.assert_called_once()


@pytest.mark.asyncio
class TestGetTokenBalance:

    async def test_balance_and_allowance(
        self, mock_secours_subscription_repo, mock_secours_transaction_repo, clock
    ):
        use_case = GetTokenBalance(mock_secours_subscription_repo, mock_secours_transaction_repo, clock=clock)

        result = await use_case.execute(4, requesting_user_id="user_1")

        assert result.is_ok()
        balance = result.value
        assert balance.token_balance == 12
        assert balance.token_value_fcfa == 250
        assert balance.rescue_value_fcfa == 375
        assert balance.purchased_this_month == 20
        assert balance.monthly_minimum == 10
        assert balance.monthly_maximum == 60
        assert balance.remaining_monthly_allowance == 40
        assert balance.low_balance_warning is True

    async def test_other_user_is_rejected(self, mock_secours_subscription_repo, mock_secours_transaction_repo):
        use_case = GetTokenBalance(mock_secours_subscription_repo, mock_secours_transaction_repo)

        result = await use_case.execute(4, requesting_user_id="user_2")

        assert result.is_err()
        assert result.error.code == "UNAUTHORIZED"


@pytest.mark.asyncio
class TestListTokenTransactions:

    async def test_clamps_page_size(self, mock_secours_subscription_repo, mock_secours_transaction_repo):
        use_case = ListTokenTransactions(mock_secours_subscription_repo, mock_secours_transaction_repo)

        result = await use_case.execute(4, limit=500, offset=-3)

        assert result.is_ok()
        assert result.value.limit == 100
        assert result.value.offset == 0
        assert result.value.total == 1
        assert result.value.transactions[0].payment_reference == "TOKENS_motors_user_1_1715769000000"
        mock_secours_transaction_repo.list_by_subscription.assert_called_once_with(4, limit=100, offset=0)

    async def test_unknown_account(self, mock_secours_subscription_repo, mock_secours_transaction_repo):
        mock_secours_subscription_repo.get_by_id = AsyncMock(return_value=None)
        use_case = ListTokenTransactions(mock_secours_subscription_repo, mock_secours_transaction_repo)

        result = await use_case.execute(4)

        assert result.is_err()
        assert result.error.code == "SECOURS_SUBSCRIPTION_NOT_FOUND"
