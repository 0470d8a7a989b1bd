"""FastAPI application factory and lifespan management."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from peridot.config import settings
from peridot.logging_config import configure_logging

configure_logging(log_level=settings.log_level, json_output=settings.json_logs)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown resources."""
    from peridot.db.engine import create_db_engine, create_session_factory
    from peridot.db.init_db import init_db

    engine = create_db_engine()
    await init_db(engine, initial_admin_github=settings.initial_admin_github)

    app.state.db_engine = engine
    app.state.db_session_factory = create_session_factory(engine)

    logger.info("Peridot API started (db=%s)", engine.dialect.name)
    yield

    await engine.dispose()
    logger.info("Peridot API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Peridot API",
        version="0.1.0",
        description="Job graph and repository bookkeeping for license-scanning agents.",
        lifespan=lifespan,
    )

    from peridot.api.middleware.trace_id import TraceIdMiddleware
    app.add_middleware(TraceIdMiddleware)

    from peridot.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    from peridot.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
