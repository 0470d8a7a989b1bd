"""Master API router mounted at /api/v1."""

from fastapi import APIRouter
from peridot.api.routes import (
    agents,
    health,
    jobs,
    projects,
    repos,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(jobs.router)
api_router.include_router(agents.router)
api_router.include_router(projects.router)
api_router.include_router(repos.router)
