"""
Pydantic Models and Schemas
===========================

Core data models for palettes, grids, generation jobs, replay results and
API requests/responses.
"""

from typing import Optional, List, Dict, Any, Tuple, Literal
from datetime import datetime, timezone
from enum import Enum
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


RGB = Tuple[int, int, int]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Enums
class JobStatus(str, Enum):
    """Generation job lifecycle status."""
    PENDING = "pending"
    PREVIEWED = "previewed"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.FAILED)


# Base Models
class BaseTimestamped(BaseModel):
    """Base model with timestamp fields."""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


# Palette Models
class PaletteEntry(BaseModel):
    """A single displayable color."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Color identifier")
    rgb: RGB = Field(..., description="Display color as an RGB triple")

    @field_validator("rgb")
    @classmethod
    def validate_rgb(cls, v: RGB) -> RGB:
        """Validate channels are 8-bit."""
        if any(channel < 0 or channel > 255 for channel in v):
            raise ValueError(f"RGB channels must be within 0-255, got {v}")
        return v

    @property
    def hex(self) -> str:
        return "#{:02x}{:02x}{:02x}".format(*self.rgb)


# Grid Models
class Grid(BaseModel):
    """Quantized image: one palette index per cell, row-major."""
    model_config = ConfigDict(frozen=True)

    rows: int = Field(..., gt=0, description="Number of rows")
    cols: int = Field(..., gt=0, description="Number of columns")
    cells: Tuple[Tuple[int, ...], ...] = Field(..., description="Palette indices per row")
    palette_size: int = Field(12, gt=1, description="Number of palette entries")

    @model_validator(mode="after")
    def validate_shape(self) -> "Grid":
        """Validate dimensions and palette indices."""
        if len(self.cells) != self.rows:
            raise ValueError(f"Expected {self.rows} rows, got {len(self.cells)}")
        for y, row in enumerate(self.cells):
            if len(row) != self.cols:
                raise ValueError(f"Row {y} has {len(row)} cells, expected {self.cols}")
            for x, index in enumerate(row):
                if index < 0 or index >= self.palette_size:
                    raise ValueError(
                        f"Cell ({y}, {x}) holds index {index} outside [0, {self.palette_size})"
                    )
        return self

    @classmethod
    def from_rows(cls, rows: List[List[int]], palette_size: int = 12) -> "Grid":
        """Build a grid from nested lists."""
        return cls(
            rows=len(rows),
            cols=len(rows[0]) if rows else 0,
            cells=tuple(tuple(row) for row in rows),
            palette_size=palette_size,
        )

    @classmethod
    def blank(cls, rows: int, cols: int, palette_size: int = 12) -> "Grid":
        return cls.from_rows([[0] * cols for _ in range(rows)], palette_size)

    def cell(self, row: int, col: int) -> int:
        return self.cells[row][col]

    def flat_index(self, row: int, col: int) -> int:
        """Position of a cell in row-major scan order."""
        return row * self.cols + col

    def cells_for(self, color: int) -> List[int]:
        """Row-major flat indices of every cell holding ``color``."""
        return [
            self.flat_index(y, x)
            for y, row in enumerate(self.cells)
            for x, index in enumerate(row)
            if index == color
        ]

    def color_counts(self) -> Dict[int, int]:
        """Number of cells per non-background palette index."""
        counts: Dict[int, int] = {}
        for row in self.cells:
            for index in row:
                if index:
                    counts[index] = counts.get(index, 0) + 1
        return dict(sorted(counts.items()))

    def is_blank(self) -> bool:
        return not any(any(row) for row in self.cells)


# Job Models
class GenerationJob(BaseTimestamped):
    """A generated grid and the state of its publication."""
    job_id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Job identifier")
    prompt: str = Field(..., description="Prompt the grid was generated from")
    grid: Grid = Field(..., description="Quantized grid", exclude=True)
    status: JobStatus = Field(JobStatus.PENDING, description="Lifecycle status")
    url: Optional[str] = Field(None, description="Published gallery URL")
    error: Optional[str] = Field(None, description="Error detail if failed")
    message: Optional[str] = Field(None, description="Status message")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")


# Replay Models
class PaintAction(BaseModel):
    """One cell activation performed while a color is selected."""
    model_config = ConfigDict(frozen=True)

    color: int = Field(..., ge=1, description="Palette index being painted")
    cell: int = Field(..., ge=0, description="Row-major cell index")


class ReplayResult(BaseModel):
    """Outcome of a replay run against the canvas site."""
    url: Optional[str] = Field(None, description="Scraped gallery URL, if any")
    painted_cells: int = Field(0, ge=0, description="Cells clicked")
    skipped_cells: int = Field(0, ge=0, description="Cells without a matching control")
    colors_used: List[int] = Field(default_factory=list, description="Palette indices painted")
    actions: List[PaintAction] = Field(default_factory=list, description="Paint log")
    duration: float = Field(0.0, description="Replay duration in seconds")


# API Request/Response Models
class PreviewRequest(BaseModel):
    """Request model for grid preview generation."""
    prompt: str = Field(..., min_length=1, max_length=1000, description="Artwork description")

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        """Validate prompt is not empty."""
        if not v.strip():
            raise ValueError("Prompt cannot be empty")
        return v.strip()


class PreviewResponse(BaseModel):
    """Response model for grid preview generation."""
    job_id: str = Field(..., description="Job identifier")
    status: JobStatus = Field(..., description="Job status")
    svg: str = Field(..., description="SVG preview markup")
    color_counts: Dict[int, int] = Field(default_factory=dict, description="Cells per color")


class PublishRequest(BaseModel):
    """Request model for publishing a previewed grid."""
    job_id: str = Field(..., min_length=1, description="Job identifier")
    title: Optional[str] = Field(None, max_length=200, description="Artwork title")


class PublishResponse(BaseModel):
    """Response model for publish submission."""
    job_id: str = Field(..., description="Job identifier")
    status: JobStatus = Field(..., description="Job status")


class JobStatusResponse(BaseModel):
    """Response model for job status polling."""
    job_id: str = Field(..., description="Job identifier")
    status: JobStatus = Field(..., description="Current status")
    url: Optional[str] = Field(None, description="Published URL")
    error: Optional[str] = Field(None, description="Error detail")
    message: Optional[str] = Field(None, description="Status message")
    created_at: datetime = Field(..., description="Job creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")

    @classmethod
    def from_job(cls, job: GenerationJob) -> "JobStatusResponse":
        return cls(
            job_id=job.job_id,
            status=job.status,
            url=job.url,
            error=job.error,
            message=job.message,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class PaletteColor(BaseModel):
    """Palette entry as exposed over the API."""
    index: int = Field(..., ge=0)
    name: str
    hex: str
    background: bool = False


class PaletteResponse(BaseModel):
    """Response model for the palette listing."""
    colors: List[PaletteColor] = Field(default_factory=list)
    rows: int
    cols: int


# Health Check Models
class HealthStatus(BaseModel):
    """Health check status."""
    status: Literal["healthy", "unhealthy", "degraded"] = Field(..., description="Overall status")
    timestamp: datetime = Field(default_factory=utcnow, description="Check timestamp")
    version: str = Field(..., description="Application version")
    image_source: str = Field(..., description="Configured image generator")
    active_jobs: int = Field(0, ge=0, description="Jobs held in the store")
    publishing_jobs: int = Field(0, ge=0, description="Replays in flight")


# Error Models
class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=utcnow, description="Error timestamp")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
