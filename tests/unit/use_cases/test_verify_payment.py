"""Unit tests for VerifyPayment, HandlePaymentNotification and ReconcilePendingPayments"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from libs.result import Return, Error
from src.app.services.payment_gateway import (
    GatewayNetworkError,
    PaymentNotification,
    PaymentStatusResult,
)
from src.app.use_cases.payments.dtos import (
    ReconciliationResultDTO,
    VerifyPaymentCommandDTO,
    VerifyPaymentResponseDTO,
)
from src.app.use_cases.payments.handle_payment_notification import HandlePaymentNotification
from src.app.use_cases.payments.reconcile_pending_payments import ReconcilePendingPayments
from src.app.use_cases.payments.verify_payment import VerifyPayment
from src.domain.payment import PaymentMethod, PaymentStatus
from tests.unit.use_cases.factories import make_payment

REFERENCE = "SUB_12_1715769000000"


@pytest.fixture
def mock_payment_repo():
    repo = MagicMock()
    repo.get_by_reference = AsyncMock(return_value=make_payment())
    repo.list_pending = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_gateway():
    gateway = MagicMock()
    gateway.check_status = AsyncMock(
        return_value=PaymentStatusResult(transaction_id=REFERENCE, status=PaymentStatus.PENDING)
    )
    gateway.parse_notification = MagicMock(
        return_value=PaymentNotification(reference=REFERENCE, status=PaymentStatus.COMPLETED)
    )
    return gateway


@pytest.fixture
def mock_reconcile():
    use_case = MagicMock()
    use_case.execute = AsyncMock(
        return_value=Return.ok(
            ReconciliationResultDTO(
                payment_id=REFERENCE,
                status="completed",
                purpose="membership",
                fulfilled=True,
                subscription_id=12,
                card_identifier="CARD-1715769000000-ABCDE",
            )
        )
    )
    return use_case


@pytest.fixture
def verify(mock_payment_repo, mock_gateway, mock_reconcile):
    return VerifyPayment(mock_payment_repo, {PaymentMethod.ORANGE_MONEY: mock_gateway}, mock_reconcile)


@pytest.mark.asyncio
class TestVerifyPayment:

    async def test_pending_at_gateway(self, verify, mock_reconcile):
        result = await verify.execute(VerifyPaymentCommandDTO(payment_id=REFERENCE, gateway="orange_money"))

        assert result.is_ok()
        assert result.value.status == "pending"
        mock_reconcile.execute.assert_not_called()

    async def test_completed_is_reconciled(self, verify, mock_gateway, mock_reconcile):
        mock_gateway.check_status = AsyncMock(
            return_value=PaymentStatusResult(
                transaction_id=REFERENCE,
                status=PaymentStatus.COMPLETED,
                external_transaction_id="MP240515.1030.A12345",
            )
        )

        result = await verify.execute(VerifyPaymentCommandDTO(payment_id=REFERENCE))

        assert result.is_ok()
        assert result.value.status == "completed"
        assert result.value.card_identifier == "CARD-1715769000000-ABCDE"
        mock_reconcile.execute.assert_called_once_with(
            REFERENCE,
            PaymentStatus.COMPLETED,
            external_transaction_id="MP240515.1030.A12345",
            message=None,
        )

    async def test_terminal_payment_skips_gateway(self, verify, mock_payment_repo, mock_gateway):
        payment = make_payment(status=PaymentStatus.FAILED)
        payment.failure_reason = "Solde insuffisant"
        mock_payment_repo.get_by_reference = AsyncMock(return_value=payment)

        result = await verify.execute(VerifyPaymentCommandDTO(payment_id=REFERENCE))

        assert result.is_ok()
        assert result.value.status == "failed"
        assert result.value.message == "Solde insuffisant"
        mock_gateway.check_status.assert_not_called()

    async def test_unknown_payment_answers_pending(self, verify, mock_payment_repo):
        mock_payment_repo.get_by_reference = AsyncMock(return_value=None)

        result = await verify.execute(VerifyPaymentCommandDTO(payment_id="SUB_99_1"))

        assert result.is_ok()
        assert result.value.status == "pending"

    async def test_gateway_error_answers_pending(self, verify, mock_gateway):
        mock_gateway.check_status = AsyncMock(side_effect=GatewayNetworkError("Délai dépassé", code="TIMEOUT"))

        result = await verify.execute(VerifyPaymentCommandDTO(payment_id=REFERENCE))

        assert result.is_ok()
        assert result.value.status == "pending"
        assert result.value.message == "Délai dépassé"

    async def test_missing_payment_id(self, verify):
        result = await verify.execute(VerifyPaymentCommandDTO(payment_id=""))

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"


@pytest.mark.asyncio
class TestHandlePaymentNotification:

    @pytest.fixture
    def mock_verify(self):
        use_case = MagicMock()
        use_case.execute = AsyncMock(
            return_value=Return.ok(VerifyPaymentResponseDTO(status="completed", payment_id=REFERENCE))
        )
        return use_case

    async def test_verifies_before_acknowledging(self, mock_gateway, mock_verify):
        handler = HandlePaymentNotification({PaymentMethod.ORANGE_MONEY: mock_gateway}, mock_verify)

        result = await handler.execute("orange_money", {"order_id": REFERENCE, "status": "SUCCESS"})

        assert result.is_ok()
        assert result.value.received is True
        assert result.value.payment_id == REFERENCE
        assert result.value.status == "completed"
        command = mock_verify.execute.call_args.args[0]
        assert command.payment_id == REFERENCE
        assert command.gateway == "orange_money"

    async def test_unknown_gateway_is_acknowledged(self, mock_gateway, mock_verify):
        handler = HandlePaymentNotification({PaymentMethod.ORANGE_MONEY: mock_gateway}, mock_verify)

        result = await handler.execute("paypal", {})

        assert result.is_ok()
        assert result.value.detail == "unknown gateway"
        mock_verify.execute.assert_not_called()

    async def test_missing_reference(self, mock_gateway, mock_verify):
        mock_gateway.parse_notification = MagicMock(return_value=PaymentNotification())
        handler = HandlePaymentNotification({PaymentMethod.ORANGE_MONEY: mock_gateway}, mock_verify)

        result = await handler.execute("orange_money", {"status": "SUCCESS"})

        assert result.is_ok()
        assert result.value.detail == "missing reference"

    async def test_verification_error_is_reported_in_detail(self, mock_gateway, mock_verify):
        mock_verify.execute = AsyncMock(
            return_value=Return.err(Error(code="RECONCILE_PAYMENT_FAILED", message="x", reason="y"))
        )
        handler = HandlePaymentNotification({PaymentMethod.ORANGE_MONEY: mock_gateway}, mock_verify)

        result = await handler.execute("orange_money", {"order_id": REFERENCE})

        assert result.is_ok()
        assert result.value.detail == "RECONCILE_PAYMENT_FAILED"


@pytest.mark.asyncio
class TestReconcilePendingPayments:

    @pytest.fixture
    def mock_verify(self):
        use_case = MagicMock()
        use_case.execute = AsyncMock(
            side_effect=lambda command: Return.ok(
                VerifyPaymentResponseDTO(
                    status="completed" if command.payment_id == "SUB_1_1" else "pending",
                    payment_id=command.payment_id,
                )
            )
        )
        return use_case

    async def test_sweep_counts_outcomes_and_times_out_old_payments(
        self, mock_payment_repo, mock_verify, mock_reconcile, clock, fixed_now
    ):
        mock_payment_repo.list_pending = AsyncMock(
            return_value=[
                make_payment(reference="SUB_1_1", created_at=datetime(2024, 5, 15, 9, 0)),
                make_payment(reference="SUB_2_2", created_at=datetime(2024, 5, 15, 9, 0)),
                make_payment(reference="SUB_3_3", created_at=datetime(2024, 5, 1, 9, 0)),
            ]
        )
        sweep = ReconcilePendingPayments(
            mock_payment_repo, mock_verify, mock_reconcile, min_age_seconds=120, timeout_hours=72, clock=clock
        )

        result = await sweep.execute()

        assert result.is_ok()
        summary = result.value
        assert summary.checked == 3
        assert summary.completed == 1
        assert summary.still_pending == 1
        assert summary.timed_out == 1
        assert summary.errors == []

        reference, status = mock_reconcile.execute.call_args.args
        assert reference == "SUB_3_3"
        assert status == PaymentStatus.FAILED
        assert mock_verify.execute.call_count == 2
        _, kwargs = mock_payment_repo.list_pending.call_args
        assert kwargs["created_before"] == datetime(2024, 5, 15, 10, 28)

    async def test_errors_do_not_stop_sweep(self, mock_payment_repo, mock_reconcile, clock):
        mock_payment_repo.list_pending = AsyncMock(
            return_value=[
                make_payment(reference="SUB_1_1", created_at=datetime(2024, 5, 15, 9, 0)),
                make_payment(reference="SUB_2_2", created_at=datetime(2024, 5, 15, 9, 0)),
            ]
        )
        verify = MagicMock()
        verify.execute = AsyncMock(
            side_effect=[
                Return.err(Error(code="VERIFY_PAYMENT_FAILED", message="x", reason="y")),
                Return.ok(VerifyPaymentResponseDTO(status="failed", payment_id="SUB_2_2")),
            ]
        )

        result = await ReconcilePendingPayments(mock_payment_repo, verify, mock_reconcile, clock=clock).execute()

        assert result.is_ok()
        assert result.value.failed == 1
        assert result.value.errors == [{"payment_id": "SUB_1_1", "error": "VERIFY_PAYMENT_FAILED"}]

    async def test_load_failure(self, mock_payment_repo, mock_reconcile, clock):
        mock_payment_repo.list_pending = AsyncMock(side_effect=Exception("db down"))

        result = await ReconcilePendingPayments(mock_payment_repo, MagicMock(), mock_reconcile, clock=clock).execute()

        assert result.is_err()
        assert result.error.code == "RECONCILE_PENDING_FAILED"
