"""Fixtures for integration tests with real database."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bia_service.db.database import configure_engine
from bia_service.db.models import Base
from bia_service.documents import AuditSink, BIARepository
from bia_service.fusion import ScaffoldRiskPlatformClient


@pytest_asyncio.fixture(scope="function")
async def test_db_engine(tmp_path):
    """Create a file-backed SQLite engine for testing.

    Each test gets a fresh database. A file is used rather than :memory:
    because the audit sink writes through its own connections.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bia.db'}", echo=False)
    configure_engine(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_db_engine):
    return async_sessionmaker(test_db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def test_db_session(session_factory):
    """Provide a test session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def repository(test_db_session):
    return BIARepository(test_db_session)


@pytest.fixture
def audit_sink(session_factory):
    return AuditSink(session_factory)


@pytest.fixture
def risk_platform():
    return ScaffoldRiskPlatformClient()


@pytest.fixture
def test_users():
    """Provide test user IDs representing different roles."""
    return {
        "author": "U_AUTHOR_001",
        "approver": "U_APPROVER_001",
        "reviewer": "U_REVIEWER_001",
    }
