"""
Art Routes
==========

FastAPI routes for previewing, publishing and polling generation jobs.
"""

from fastapi import APIRouter, Depends, Request

from canvas_art.config.logging import get_logger
from canvas_art.config.settings import get_settings
from canvas_art.core.imaging.acquisition import generate_image
from canvas_art.core.imaging.quantizer import image_to_grid
from canvas_art.core.jobs.manager import JobManager
from canvas_art.core.palette import BACKGROUND_INDEX, PALETTE
from canvas_art.core.rendering.svg_preview import grid_to_svg
from canvas_art.models.schemas import (
    JobStatusResponse,
    PaletteColor,
    PaletteResponse,
    PreviewRequest,
    PreviewResponse,
    PublishRequest,
    PublishResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Art"])


def get_job_manager(request: Request) -> JobManager:
    """Dependency returning the application's job manager."""
    return request.app.state.job_manager


@router.post("/preview", response_model=PreviewResponse)
async def create_preview(
    request: PreviewRequest, manager: JobManager = Depends(get_job_manager)
) -> PreviewResponse:
    """Generate an image for the prompt, quantize it and return the SVG preview."""
    logger.info("Preview requested", prompt=request.prompt)

    image = await generate_image(request.prompt)
    grid = image_to_grid(image)
    svg = grid_to_svg(grid)
    job = manager.create_preview(request.prompt, grid)

    return PreviewResponse(
        job_id=job.job_id, status=job.status, svg=svg, color_counts=grid.color_counts()
    )


@router.post("/publish", response_model=PublishResponse, status_code=202)
async def publish(
    request: PublishRequest, manager: JobManager = Depends(get_job_manager)
) -> PublishResponse:
    """Start publishing a previewed job; poll its status for the result."""
    job = manager.start_publish(request.job_id, request.title)
    return PublishResponse(job_id=job.job_id, status=job.status)


@router.get("/status/{job_id}", response_model=JobStatusResponse)
async def job_status(
    job_id: str, manager: JobManager = Depends(get_job_manager)
) -> JobStatusResponse:
    """Current status of a job."""
    return JobStatusResponse.from_job(manager.get_job(job_id))


@router.get("/palette", response_model=PaletteResponse)
async def palette() -> PaletteResponse:
    """Colors available on the canvas site, in selector order."""
    settings = get_settings()
    colors = [
        PaletteColor(index=i, name=entry.name, hex=entry.hex, background=i == BACKGROUND_INDEX)
        for i, entry in enumerate(PALETTE)
    ]
    return PaletteResponse(colors=colors, rows=settings.grid_rows, cols=settings.grid_cols)
