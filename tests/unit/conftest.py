"""Shared fixtures for unit tests"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def fixed_now():
    return datetime(2024, 5, 15, 10, 30, 0)


@pytest.fixture
def clock(fixed_now):
    """Deterministic clock for use cases"""
    return lambda: fixed_now
