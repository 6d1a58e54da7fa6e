"""Shared fixtures for UI tests."""

from unittest.mock import AsyncMock

import pytest

from sitesmith.editor.session import EditSession
from sitesmith.models.config import EditorConfig
from sitesmith.models.page import SaveResult
from sitesmith.services.recovery_store import MemoryRecoveryStore


@pytest.fixture
def persistence():
    """Persistence collaborator whose saves always succeed.

    Tests that need a failing save set `persistence.save.return_value`.
    """
    mock = AsyncMock()
    mock.save.return_value = SaveResult.ok(file_path="bakery/index.html")
    return mock


@pytest.fixture
def recovery_store():
    return MemoryRecoveryStore()


@pytest.fixture
def make_session(sample_page, persistence, recovery_store):
    """Factory for sessions over the sample page sharing one recovery store."""
    def factory():
        return EditSession(
            sample_page,
            "bakery/index.html",
            persistence,
            recovery_store,
            config=EditorConfig(status_reset_delay=60),
        )
    return factory
