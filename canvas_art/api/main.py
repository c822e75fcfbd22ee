"""
FastAPI Application
==================

Main FastAPI application exposing prompt preview, background publishing and
job status polling.
"""

from contextlib import asynccontextmanager
import uuid
from typing import AsyncGenerator, Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from canvas_art.api.routes.art import router as art_router
from canvas_art.api.routes.health import router as health_router
from canvas_art.config.logging import get_logger
from canvas_art.config.settings import get_settings
from canvas_art.core.imaging.acquisition import UpstreamGenerationError, UpstreamHTTPError
from canvas_art.core.jobs.manager import JobManager, JobNotFoundError, JobStateError
from canvas_art.models.schemas import ErrorResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting FastAPI application")
    app.state.job_manager = JobManager()

    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")
        try:
            await app.state.job_manager.close()
        except Exception as e:
            logger.error("Error waiting for publishes", error=str(e))


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    error_code: str,
    details: Any = None,
) -> JSONResponse:
    error_response = ErrorResponse(
        error=error,
        error_code=error_code,
        details=details,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


async def add_request_id(request: Request, call_next) -> JSONResponse:  # type: ignore
    """Add request ID to all requests."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)  # type: ignore
    response.headers["X-Request-ID"] = request_id  # type: ignore

    return response  # type: ignore


async def custom_http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom HTTP exception handler with structured error response."""
    logger.error("HTTP exception", status_code=exc.status_code, detail=exc.detail)
    return _error_response(request, exc.status_code, str(exc.detail), str(exc.status_code))


async def upstream_generation_exception_handler(
    request: Request, exc: UpstreamGenerationError
) -> JSONResponse:
    """Image generator failures are reported as a bad gateway."""
    details: dict[str, Any] = {"message": str(exc)}
    if isinstance(exc, UpstreamHTTPError):
        details["upstream_status"] = exc.status_code

    logger.error("Image generation error", error=str(exc), error_type=type(exc).__name__)
    return _error_response(
        request,
        502,
        "Image generation failed",
        "UPSTREAM_GENERATION_ERROR",
        details if get_settings().debug else None,
    )


async def job_not_found_exception_handler(
    request: Request, exc: JobNotFoundError
) -> JSONResponse:
    logger.warning("Job not found", job_id=exc.job_id)
    return _error_response(request, 404, "Job not found", "JOB_NOT_FOUND", {"job_id": exc.job_id})


async def job_state_exception_handler(request: Request, exc: JobStateError) -> JSONResponse:
    logger.warning("Invalid job transition", error=str(exc))
    return _error_response(request, 409, str(exc), "JOB_STATE_CONFLICT")


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """General exception handler for unexpected errors."""
    logger.error("Unhandled exception", exception=str(exc), exc_info=True)
    return _error_response(
        request,
        500,
        "Internal server error",
        "INTERNAL_ERROR",
        {"exception": str(exc)} if get_settings().debug else None,
    )


def create_app() -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.

    Returns:
        FastAPI application instance
    """
    settings = get_settings()
    application = FastAPI(
        title=settings.app_name,
        description="Turn prompts into pixel art and publish it on the collaborative canvas",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    application.add_middleware(GZipMiddleware, minimum_size=1000)
    application.middleware("http")(add_request_id)

    application.add_exception_handler(HTTPException, custom_http_exception_handler)
    application.add_exception_handler(
        UpstreamGenerationError, upstream_generation_exception_handler
    )
    application.add_exception_handler(JobNotFoundError, job_not_found_exception_handler)
    application.add_exception_handler(JobStateError, job_state_exception_handler)
    application.add_exception_handler(Exception, general_exception_handler)

    application.include_router(health_router)
    application.include_router(art_router)

    @application.get("/", tags=["General"])
    async def root() -> dict[str, Any]:
        """Root endpoint with basic API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs_url": "/docs" if settings.debug else None,
            "health_check": "/health",
            "endpoints": {
                "preview": "POST /api/v1/preview",
                "publish": "POST /api/v1/publish",
                "status": "GET /api/v1/status/{job_id}",
                "palette": "GET /api/v1/palette",
            },
        }

    return application


app = create_app()


# Development server runner
def run_development_server() -> None:
    """Run development server with auto-reload."""
    settings = get_settings()
    uvicorn.run(
        "canvas_art.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run_development_server()
