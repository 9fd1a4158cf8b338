"""
NoteDigest Backend: Test Configuration (conftest.py)
======================================================

Shared fixtures for the test suite.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:     fresh SQLite database file (aiosqlite) with the schema
    ├── db_session:    AsyncSession on that engine
    ├── fake_llm:      scripted LLMService; records every prompt it receives
    ├── sleeps:        list collecting the backoff delays a RetryingCaller asked for
    ├── gateway:       AIGateway wired to fake_llm, sleeping instantly
    └── api_client:    httpx AsyncClient on create_app() with db + gateway overridden
"""

import os
import tempfile

# Must run before any notedigest import: settings and the engine read these
_TEST_DIR = tempfile.mkdtemp(prefix="notedigest_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/health.db"
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator, List, Union  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from notedigest.database import Base, build_engine, get_db_session  # noqa: E402
from notedigest.services.ai_gateway import AIGateway  # noqa: E402
from notedigest.services.llm_base import LLMService  # noqa: E402
from notedigest.services.retry import RetryingCaller  # noqa: E402
from notedigest.services.tokens import TokenEstimator  # noqa: E402
import notedigest.models  # noqa: E402,F401

OWNER = "owner-alice"
OTHER_OWNER = "owner-bob"


class FakeLLM(LLMService):
    """
    Scripted LLM. Each call pops the next scripted item: a string is returned,
    an exception instance is raised. When the script is empty, `default` is
    returned.
    """

    model_name = "fake-model"

    def __init__(self, default: str = "ok"):
        self.default = default
        self.script: List[Union[str, BaseException]] = []
        self.calls: List[dict] = []

    def queue(self, *items: Union[str, BaseException]) -> "FakeLLM":
        self.script.extend(items)
        return self

    async def generate(self, prompt: str, *, max_output_tokens: int, temperature: float) -> str:
        self.calls.append(
            {"prompt": prompt, "max_output_tokens": max_output_tokens, "temperature": temperature}
        )
        item = self.script.pop(0) if self.script else self.default
        if isinstance(item, BaseException):
            raise item
        return item


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def retrying(sleeps):
    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return RetryingCaller(max_attempts=3, attempt_timeout=1.0, backoff_base=1.0, sleep=record_sleep)


@pytest.fixture
def gateway(fake_llm, retrying):
    return AIGateway(
        client_factory=lambda: fake_llm,
        estimator=TokenEstimator(multiplier=1.3, limit=8000),
        retrying=retrying,
        model_name="fake-model",
    )


@pytest_asyncio.fixture
async def api_client(session_factory, gateway):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    Each request gets its own session on the per-test database, committed on
    success and rolled back on error, like get_db_session in production.
    """
    from notedigest.main import create_app

    app = create_app(ai_gateway=gateway)

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Owner-ID": OWNER},
    ) as client:
        yield client
