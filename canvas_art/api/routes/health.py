"""
Health Routes
=============

FastAPI routes for health check endpoints.
"""

from fastapi import APIRouter, Depends

from canvas_art.api.routes.art import get_job_manager
from canvas_art.config.settings import get_settings
from canvas_art.core.jobs.manager import JobManager
from canvas_art.models.schemas import HealthStatus

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthStatus)
async def health_check(manager: JobManager = Depends(get_job_manager)) -> HealthStatus:
    """Basic health check endpoint."""
    settings = get_settings()
    return HealthStatus(
        status="healthy",
        version=settings.app_version,
        image_source=settings.image_source,
        active_jobs=len(manager.store),
        publishing_jobs=manager.active_publishes,
    )
