"""Pytest configuration and fixtures for travel_crm.

HTTP tests run against create_app() with the repository and gateway
dependencies replaced by the in-memory fakes from tests.fakes, so no
database is needed. Tests that need Postgres use db_session and are
skipped when DATABASE_URL is not set.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.fakes import (
    InMemoryAutomationRepository,
    InMemoryExecutionRepository,
    RecordingGateway,
)
from travel_crm.api.v1.dependencies import (
    get_automation_repo,
    get_automation_repo_for_write,
    get_crm_gateway,
    get_execution_repo,
    get_execution_repo_for_write,
)
from travel_crm.core.config import get_settings
from travel_crm.core.limiter import limiter
from travel_crm.main import create_app


@pytest.fixture
def automation_repo() -> InMemoryAutomationRepository:
    return InMemoryAutomationRepository()


@pytest.fixture
def execution_repo(automation_repo: InMemoryAutomationRepository) -> InMemoryExecutionRepository:
    return InMemoryExecutionRepository(automation_repo)


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def app(automation_repo, execution_repo, gateway):
    """FastAPI app wired to in-memory repositories and the recording gateway."""
    get_settings.cache_clear()
    limiter.reset()
    application = create_app()
    application.dependency_overrides[get_automation_repo] = lambda: automation_repo
    application.dependency_overrides[get_automation_repo_for_write] = lambda: automation_repo
    application.dependency_overrides[get_execution_repo] = lambda: execution_repo
    application.dependency_overrides[get_execution_repo_for_write] = lambda: execution_repo
    application.dependency_overrides[get_crm_gateway] = lambda: gateway
    yield application
    application.dependency_overrides.clear()
    get_settings.cache_clear()


@pytest.fixture
async def client(app) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session() -> AsyncSession:
    """Database session for repository tests. Rolls back after test.

    Requires DATABASE_URL (async driver) and a migrated schema. Skips when
    Postgres is not configured. Run without DB via: pytest -m 'not requires_db'.
    """
    get_settings.cache_clear()
    if not get_settings().database_configured:
        pytest.skip(
            "Postgres not configured: set DATABASE_URL, then run: alembic upgrade head"
        )
    from travel_crm.infrastructure.persistence.database import get_session_factory

    session_factory = get_session_factory()
    async with session_factory() as session:
        yield session
        await session.rollback()
