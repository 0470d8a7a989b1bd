"""Shared test fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from peridot.db.base import Base
from peridot.db.engine import create_db_engine, create_session_factory
# Import all models to register with Base.metadata
import peridot.db.models  # noqa: F401
from peridot.repositories.agent_repo import AgentRepository
from peridot.repositories.project_repo import ProjectRepository, SubprojectRepository
from peridot.repositories.repo_repo import RepoBranchRepository, RepoPullRepository, RepoRepository


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with foreign keys enforced."""
    engine = create_db_engine("sqlite+aiosqlite:///")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    async with create_session_factory(db_engine)() as session:
        yield session


async def _seed_hierarchy(db_session) -> dict:
    """Seed project -> subproject -> repo -> branch -> pull plus one agent.

    Returns a dict of the created IDs; the seed is committed so job graph
    operations run their own transactions.
    """
    project_id = await ProjectRepository(db_session).add("kubernetes", "Kubernetes")
    subproject_id = await SubprojectRepository(db_session).add(project_id, "kubernetes", "kubernetes/kubernetes")
    repo_id = await RepoRepository(db_session).add(
        subproject_id, "kubernetes", "https://github.com/kubernetes/kubernetes.git"
    )
    await RepoBranchRepository(db_session).add(repo_id, "master")
    repopull_id = await RepoPullRepository(db_session).add(repo_id, "master", "abc123", "", "")
    agent_id = await AgentRepository(db_session).add(
        "idsearcher", True, "localhost", 9001, True, False, False, True
    )
    await db_session.commit()
    return {
        "project_id": project_id,
        "subproject_id": subproject_id,
        "repo_id": repo_id,
        "repopull_id": repopull_id,
        "agent_id": agent_id,
    }


@pytest.fixture
def seed_hierarchy():
    """The seeding routine behind ``hierarchy``, for tests that build their own store."""
    return _seed_hierarchy


@pytest.fixture
async def hierarchy(db_session):
    return await _seed_hierarchy(db_session)


@pytest.fixture
def app(db_engine):
    """Create a test application instance with in-memory DB."""
    from peridot.main import create_app

    _app = create_app()
    _app.state.db_engine = db_engine
    _app.state.db_session_factory = create_session_factory(db_engine)
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
