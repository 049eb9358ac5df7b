"""
Unit Test Fixtures.

Fixtures for unit tests - all external dependencies are mocked.
Unit tests should be fast and isolated, never touching real databases.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from modules.backend.models.note import Visibility


# =============================================================================
# Database Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Mock database session for unit tests.

    Usage:
        def test_repository(mock_db_session: AsyncMock):
            repo = NoteRepository(mock_db_session)
    """
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    return session


# =============================================================================
# Note Fixtures
# =============================================================================


@pytest.fixture
def note_factory():
    """
    Build lightweight note stand-ins carrying only what access checks read.

    Usage:
        def test_view(note_factory):
            note = note_factory(owner_id="3", visibility="all_admins")
    """

    def _make(owner_id: str = "3", visibility: object = Visibility.ONLY_ME) -> SimpleNamespace:
        return SimpleNamespace(id="note-1", owner_id=owner_id, visibility=visibility)

    return _make
