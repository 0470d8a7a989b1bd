"""FastAPI dependency injection providers."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from peridot.models.common import MAX_ID
from peridot.services.job_graph import JobGraph


async def get_db(request: Request) -> AsyncGenerator:
    """Yield a database session from the app's session factory."""
    session_factory = request.app.state.db_session_factory
    async with session_factory() as session:
        yield session


def get_job_graph(db: AsyncSession = Depends(get_db)) -> JobGraph:
    """Return a job graph bound to the request's session."""
    return JobGraph(db)


def get_trace_id(request: Request) -> str:
    """Extract trace_id from request state (set by middleware)."""
    return getattr(request.state, "trace_id", "unknown")


# Type aliases for dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
Graph = Annotated[JobGraph, Depends(get_job_graph)]
TraceId = Annotated[str, Depends(get_trace_id)]
IdPath = Annotated[int, Path(ge=0, le=MAX_ID)]
