"""
Pytest fixtures for LivePulse backend tests.
"""

import os
from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("IP_SALT", "test-ip-salt")
os.environ.setdefault("SEED_QUESTIONS_ON_STARTUP", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

ADMIN_SECRET = os.environ["ADMIN_SECRET"]

TEST_QUESTIONS = [
    "How much did you enjoy the talk?",
    "Should new SaaS products start out as a monolith?",
    "Will you be vibe coding more often from now on?",
]


@pytest.fixture
async def engine(tmp_path: Any) -> AsyncGenerator[Any, None]:
    """Fresh file-backed SQLite database with the schema created."""
    from db.session import close_db, configure_engine, init_db

    engine = configure_engine(f"sqlite+aiosqlite:///{tmp_path / 'livepulse_test.db'}")
    await init_db()
    yield engine
    await close_db()


@pytest.fixture(autouse=True)
def clear_stats_cache() -> None:
    """The stats cache is process-global; start every test empty."""
    from services.stats_service import stats_cache

    stats_cache.invalidate()


@pytest.fixture
async def db_session(engine: Any) -> AsyncGenerator[Any, None]:
    """Database session on the test database."""
    from db.session import get_session_maker

    async with get_session_maker()() as session:
        yield session


@pytest.fixture
async def questions(db_session: Any) -> list[Any]:
    """Three seeded questions, in display order."""
    from repositories.question_repository import QuestionRepository

    created = await QuestionRepository(db_session).seed_defaults(TEST_QUESTIONS)
    await db_session.commit()
    return created


@pytest.fixture
def question_ids(questions: list[Any]) -> list[str]:
    return [q.id for q in questions]


@pytest.fixture
def make_ratings(question_ids: list[str]) -> Any:
    """Build a ratings list (one per question) for the API or the service."""

    def _make(*values: float, as_json: bool = False) -> list[Any]:
        if not values:
            values = (7,) * len(question_ids)
        pairs = list(zip(question_ids, values))
        if as_json:
            return [{"questionId": qid, "rating": rating} for qid, rating in pairs]
        return pairs

    return _make


@pytest.fixture
async def app() -> Any:
    """Create FastAPI application for testing."""
    from main import app as fastapi_app

    return fastapi_app


@pytest.fixture
async def client(app: Any, engine: Any) -> AsyncGenerator[AsyncClient, None]:
    """Async test client bound to the test database."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Secret": ADMIN_SECRET}

