"""Unit tests for MembershipCardExpiryWorker

Tests cover:
- Worker initialization with configuration
- run_once execution
- Expiry disabled scenario
- Use case failure
- Shutdown and cleanup
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from src.worker.card_expiry import MembershipCardExpiryWorker
from src.app.use_cases.membership.dtos import ExpireCardsResponseDTO


def _session_factory():
    mock_session = MagicMock()
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=mock_session)


class TestCardExpiryWorkerInit:
    """Test worker initialization"""

    @patch("src.worker.card_expiry.ApplicationConfig")
    @patch("src.worker.card_expiry.create_async_engine")
    def test_initializes_with_default_config(self, mock_create_engine, mock_app_config):
        """
        Given: No custom configuration provided
        When: Worker is initialized
        Then: Uses DB_URI from ApplicationConfig
        """
        # Arrange
        mock_app_config.DB_URI = "postgresql+asyncpg://default@localhost/db"
        mock_create_engine.return_value = MagicMock()

        # Act
        worker = MembershipCardExpiryWorker()

        # Assert
        assert worker.db_uri == "postgresql+asyncpg://default@localhost/db"
        assert worker.batch_size == 500
        mock_create_engine.assert_called_once()

    @patch("src.worker.card_expiry.ApplicationConfig")
    @patch("src.worker.card_expiry.create_async_engine")
    def test_initializes_with_custom_values(self, mock_create_engine, mock_app_config):
        mock_app_config.DB_URI = "postgresql+asyncpg://default@localhost/db"
        mock_create_engine.return_value = MagicMock()

        worker = MembershipCardExpiryWorker(db_uri="sqlite+aiosqlite://", batch_size=50)

        assert worker.db_uri == "sqlite+aiosqlite://"
        assert worker.batch_size == 50


@pytest.mark.asyncio
class TestCardExpiryWorkerRunOnce:
    """Test run_once execution"""

    @patch("src.worker.card_expiry.ApplicationConfig")
    @patch("src.worker.card_expiry.ExpireMembershipCards")
    @patch("src.worker.card_expiry.SqlAlchemyUnitOfWork")
    @patch("src.worker.card_expiry.SqlAlchemyMembershipCardRepository")
    @patch("src.worker.card_expiry.create_async_engine")
    @patch("src.worker.card_expiry.sessionmaker")
    async def test_run_once_expires_cards(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_card_repo_class,
        mock_uow_class,
        mock_use_case_class,
        mock_app_config,
    ):
        """
        Given: Card expiry is enabled and two cards are overdue
        When: run_once is called
        Then: Executes ExpireMembershipCards and returns its result
        """
        # Arrange
        mock_app_config.DB_URI = "postgresql+asyncpg://test@localhost/db"
        mock_app_config.CARD_EXPIRY_ENABLED = True
        mock_sessionmaker.return_value = _session_factory()
        mock_create_engine.return_value = MagicMock()

        mock_use_case = MagicMock()
        mock_result = MagicMock()
        mock_result.is_err.return_value = False
        mock_result.value = ExpireCardsResponseDTO(
            expired_count=2,
            card_identifiers=["CARD-1714554000000-ABCDE", "CARD-1714554000000-FGHIJ"],
        )
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        # Act
        worker = MembershipCardExpiryWorker(batch_size=100)
        result = await worker.run_once()

        # Assert
        assert result.expired_count == 2
        mock_use_case.execute.assert_called_once()
        _, kwargs = mock_use_case_class.call_args
        assert kwargs["batch_size"] == 100

    @patch("src.worker.card_expiry.ApplicationConfig")
    @patch("src.worker.card_expiry.ExpireMembershipCards")
    @patch("src.worker.card_expiry.create_async_engine")
    async def test_run_once_skips_when_disabled(
        self, mock_create_engine, mock_use_case_class, mock_app_config
    ):
        """
        Given: Card expiry is disabled
        When: run_once is called
        Then: Returns an empty result without touching the database
        """
        # Arrange
        mock_app_config.DB_URI = "postgresql+asyncpg://test@localhost/db"
        mock_app_config.CARD_EXPIRY_ENABLED = False
        mock_create_engine.return_value = MagicMock()

        # Act
        worker = MembershipCardExpiryWorker()
        result = await worker.run_once()

        # Assert
        assert result.expired_count == 0
        mock_use_case_class.assert_not_called()

    @patch("src.worker.card_expiry.ApplicationConfig")
    @patch("src.worker.card_expiry.ExpireMembershipCards")
    @patch("src.worker.card_expiry.SqlAlchemyUnitOfWork")
    @patch("src.worker.card_expiry.SqlAlchemyMembershipCardRepository")
    @patch("src.worker.card_expiry.create_async_engine")
    @patch("src.worker.card_expiry.sessionmaker")
    async def test_run_once_raises_on_use_case_error(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_card_repo_class,
        mock_uow_class,
        mock_use_case_class,
        mock_app_config,
    ):
        """
        Given: ExpireMembershipCards fails
        When: run_once is called
        Then: Raises RuntimeError
        """
        # Arrange
        mock_app_config.CARD_EXPIRY_ENABLED = True
        mock_sessionmaker.return_value = _session_factory()
        mock_create_engine.return_value = MagicMock()

        mock_result = MagicMock()
        mock_result.is_err.return_value = True
        mock_result.error.message = "Failed to expire membership cards"
        mock_result.error.reason = "connection lost"
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        # Act & Assert
        worker = MembershipCardExpiryWorker()
        with pytest.raises(RuntimeError, match="Card expiry failed"):
            await worker.run_once()


@pytest.mark.asyncio
class TestCardExpiryWorkerShutdown:
    """Test shutdown"""

    @patch("src.worker.card_expiry.ApplicationConfig")
    @patch("src.worker.card_expiry.create_async_engine")
    async def test_shutdown_disposes_engine(self, mock_create_engine, mock_app_config):
        mock_engine = MagicMock()
        mock_engine.dispose = AsyncMock()
        mock_create_engine.return_value = mock_engine

        worker = MembershipCardExpiryWorker()
        await worker.shutdown()

        mock_engine.dispose.assert_called_once()
