"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Test Database Configuration:
    Tests use an in-memory SQLite database created fresh for each test.
    To test against another database, set the TEST_DATABASE_URL environment
    variable to an async SQLAlchemy URL.
"""

import os
from collections.abc import AsyncGenerator, Callable, Iterator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from modules.backend.core.config import get_app_config, get_settings
from modules.backend.core.config_schema import BoardSchema
from modules.backend.models import note as note_models  # noqa: F401  (registers tables)
from modules.backend.models.base import Base
from modules.backend.schemas.actor import Actor
from modules.backend.services.ordering import get_position_cache

PROJECT_ROOT = Path(__file__).resolve().parent.parent

TEST_JWT_SECRET = "test-jwt-secret-for-testing-only"
TEST_NONCE_SECRET = "test-nonce-secret-for-testing-only"


# =============================================================================
# Environment
# =============================================================================


def _clear_caches() -> None:
    get_settings.cache_clear()
    get_app_config.cache_clear()
    get_position_cache.cache_clear()


@pytest.fixture(autouse=True)
def board_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """
    Run every test from the project root with test secrets.

    Config, settings and the position cache are rebuilt for each test so no
    state leaks between tests.
    """
    monkeypatch.chdir(PROJECT_ROOT)
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("NONCE_SECRET", TEST_NONCE_SECRET)
    _clear_caches()
    yield
    _clear_caches()


# =============================================================================
# Database Configuration
# =============================================================================


def get_test_database_url() -> str:
    """TEST_DATABASE_URL if set, otherwise in-memory SQLite."""
    return os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def is_sqlite() -> bool:
    return "sqlite" in get_test_database_url()


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create the test database engine with all board tables.

    For SQLite the in-memory database lives on a single shared connection.
    """
    url = get_test_database_url()

    if is_sqlite():
        engine = create_async_engine(
            url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(
    db_session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a database session for a single test.

    Changes are rolled back after the test.
    """
    async with db_session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# Board Fixtures
# =============================================================================


@pytest.fixture
def board_config() -> BoardSchema:
    """Board policy loaded from config/settings/board.yaml."""
    return get_app_config().board


@pytest.fixture
def make_actor(board_config: BoardSchema) -> Callable[..., Actor]:
    """
    Build an actor whose capabilities come from the configured role table.

    Usage:
        def test_something(make_actor):
            editor = make_actor("7", "editor")
    """

    def _make(actor_id: str, *roles: str, caps: tuple[str, ...] = ()) -> Actor:
        return Actor.from_claims(
            {"sub": actor_id, "roles": list(roles), "caps": list(caps)},
            board_config.roles,
        )

    return _make


@pytest.fixture
def admin(make_actor: Callable[..., Actor]) -> Actor:
    return make_actor("1", "administrator")


@pytest.fixture
def editor(make_actor: Callable[..., Actor]) -> Actor:
    return make_actor("2", "editor")


@pytest.fixture
def author(make_actor: Callable[..., Actor]) -> Actor:
    return make_actor("3", "author")


@pytest.fixture
def other_author(make_actor: Callable[..., Actor]) -> Actor:
    return make_actor("4", "author")


@pytest.fixture
def subscriber(make_actor: Callable[..., Actor]) -> Actor:
    return make_actor("5", "subscriber")
