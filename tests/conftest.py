"""pytest fixtures for AXIS HAIR backend tests.

Provides:
- postgres_container: Session-scoped testcontainer PostgreSQL instance
- utc_timezone: Autouse fixture enforcing UTC timezone
- session: Function-scoped database session with table truncation
- session_factory / uow_factory: Function-scoped factories bound to the test database
- FakeTrigger / FakeReader / fast_sleep: In-memory doubles for generation tests
"""

import asyncio
import os
import subprocess
import sys
from pathlib import Path
from typing import AsyncGenerator
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Settings validation is skipped in test environments
os.environ.setdefault("APP_ENV", "test")

from axishair.core.database import setup_db_session  # noqa: E402
from axishair.models.generation_job import GenerationJob, GenerationKind  # noqa: E402
from axishair.services.exceptions import TriggerError  # noqa: E402

BACKEND_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(scope="session")
def postgres_container():
    """Provide session-scoped PostgreSQL container with migrations applied.

    Container starts once per test session and is reused across all tests.
    Migrations are applied using subprocess to avoid asyncio event loop conflicts.
    Tests that need the database are skipped when Docker is not available.
    """
    try:
        from testcontainers.postgres import PostgresContainer

        container = PostgresContainer(
            image="postgres:17",
            username="test",
            password="test",
            dbname="test_axishair",
        )
        container.start()
    except Exception as e:
        pytest.skip(f"PostgreSQL container unavailable: {e}")

    try:
        db_url = container.get_connection_url(driver="psycopg")

        # Set DATABASE_URL environment variable for alembic env.py
        env = os.environ.copy()
        env["DATABASE_URL"] = db_url

        subprocess.run(
            [sys.executable, "-m", "alembic", "upgrade", "head"],
            check=True,
            capture_output=True,
            text=True,
            env=env,
            cwd=BACKEND_ROOT,
        )

        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session", autouse=True)
def utc_timezone():
    """Enforce UTC timezone for all tests.

    Autouse fixture ensures TZ=UTC is set before any test runs.
    This prevents timezone-dependent behavior and ensures reproducible tests.
    """
    os.environ["TZ"] = "UTC"
    yield


@pytest_asyncio.fixture(scope="function")
async def session(postgres_container) -> AsyncGenerator[AsyncSession, None]:
    """Provide function-scoped database session with table truncation.

    Each test gets a fresh session with empty tables (truncated between tests).
    """
    db_url = postgres_container.get_connection_url(driver="psycopg")
    factory = setup_db_session(db_url, pool_size=5)

    async with factory() as session:
        yield session

        # Rollback any uncommitted changes from the test
        await session.rollback()

        # Dependent table first
        await session.execute(text("DELETE FROM consultations"))
        await session.execute(text("DELETE FROM clients"))
        await session.commit()

    await factory.kw["bind"].dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(session: AsyncSession) -> async_sessionmaker[AsyncSession]:
    """Session factory sharing the test session's engine."""
    return async_sessionmaker(bind=session.bind, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def uow_factory(session_factory):
    """Provide function-scoped UnitOfWork factory."""
    from axishair.uow import create_uow_factory

    return create_uow_factory(session_factory)


class FakeTrigger:
    """Records invocations; optionally fails or runs a side effect."""

    def __init__(self, error: Exception | None = None, on_invoke=None):
        self.calls: list[tuple[GenerationKind, UUID]] = []
        self.error = error
        self.on_invoke = on_invoke

    async def invoke(self, kind: GenerationKind, subject_id: UUID) -> None:
        self.calls.append((kind, subject_id))
        if self.on_invoke is not None:
            self.on_invoke(kind, subject_id)
        if self.error is not None:
            raise self.error


class FakeReader:
    """Returns scripted jobs per read; the last script entry repeats forever.

    Script entries may be a GenerationJob, an Exception to raise, or a
    callable returning either (called with the read number, 1-based).
    """

    def __init__(self, *script):
        self.script = list(script)
        self.reads = 0

    async def read(self, subject_id: UUID, kind: GenerationKind) -> GenerationJob:
        self.reads += 1
        entry = self.script[min(self.reads, len(self.script)) - 1]
        if callable(entry) and not isinstance(entry, GenerationJob):
            entry = entry(self.reads)
        if isinstance(entry, Exception):
            raise entry
        return entry


class SleepRecorder:
    """Stand-in for asyncio.sleep: records requested delays, yields once."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def fast_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def trigger_error() -> TriggerError:
    return TriggerError("generate-recommendation failed (500): boom", status_code=500)
