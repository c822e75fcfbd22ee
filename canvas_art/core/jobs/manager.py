"""
Job Manager
===========

Tracks generation jobs from preview through publication. Publishing runs in
the background; callers poll the job for its outcome.

Statuses only move forward and terminal fields are written once:

    pending -> previewed -> publishing -> done | failed
"""

from datetime import timedelta
from typing import Any, Dict, FrozenSet, Optional, Set
import asyncio

from canvas_art.config.logging import get_logger
from canvas_art.config.settings import Settings, get_settings
from canvas_art.core.jobs.store import Clock, InMemoryJobStore, JobStore
from canvas_art.core.replay.engine import CanvasReplayEngine
from canvas_art.core.replay.errors import ReplayError
from canvas_art.models.schemas import GenerationJob, Grid, JobStatus, utcnow

logger = get_logger(__name__)

_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PREVIEWED, JobStatus.PUBLISHING, JobStatus.FAILED}),
    JobStatus.PREVIEWED: frozenset({JobStatus.PUBLISHING, JobStatus.FAILED}),
    JobStatus.PUBLISHING: frozenset({JobStatus.DONE, JobStatus.FAILED}),
    JobStatus.DONE: frozenset(),
    JobStatus.FAILED: frozenset(),
}

SOFT_FAILURE_MESSAGE = "Published, but the gallery URL could not be found"


class JobNotFoundError(Exception):
    """Exception raised for unknown or expired job ids."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class JobStateError(Exception):
    """Exception raised for a transition the lifecycle does not allow."""

    pass


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return target in _TRANSITIONS[current]


class JobManager:
    """Creates jobs, runs background publishes and records their outcome."""

    def __init__(
        self,
        store: Optional[JobStore] = None,
        engine: Optional[CanvasReplayEngine] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self.settings = settings or get_settings()
        self.clock: Clock = clock or getattr(store, "clock", utcnow)
        self.store = store or InMemoryJobStore(
            retention=timedelta(seconds=self.settings.job_retention_seconds), clock=self.clock
        )
        self.engine = engine or CanvasReplayEngine(self.settings)
        self.logger: Any = logger.bind(component="job_manager")  # structlog.BoundLoggerBase
        self._tasks: Set["asyncio.Task[None]"] = set()

    @property
    def active_publishes(self) -> int:
        return len(self._tasks)

    def create_preview(self, prompt: str, grid: Grid) -> GenerationJob:
        """
        Register a job for a freshly quantized grid.

        Args:
            prompt: Prompt the grid came from
            grid: Quantized grid

        Returns:
            Job in ``previewed`` status
        """
        self.store.sweep_expired()

        now = self.clock()
        job = GenerationJob(prompt=prompt, grid=grid, created_at=now, updated_at=now)
        self.store.put(job)
        self.transition(job, JobStatus.PREVIEWED)

        self.logger.info("Job created", job_id=job.job_id, jobs=len(self.store))
        return job

    def get_job(self, job_id: str) -> GenerationJob:
        job = self.store.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def transition(self, job: GenerationJob, status: JobStatus, **fields: Any) -> GenerationJob:
        """
        Move ``job`` to ``status`` and set result fields.

        Raises:
            JobStateError: If the lifecycle does not allow the move
        """
        if not can_transition(job.status, status):
            raise JobStateError(
                f"Job {job.job_id} cannot move from {job.status.value} to {status.value}"
            )

        now = self.clock()
        for name, value in fields.items():
            setattr(job, name, value)
        job.status = status
        job.updated_at = now
        if status.is_terminal:
            job.completed_at = now

        self.logger.debug("Job status changed", job_id=job.job_id, status=status.value)
        return job

    def start_publish(self, job_id: str, title: Optional[str] = None) -> GenerationJob:
        """
        Mark the job as publishing and replay it in the background.

        Returns:
            The job, already in ``publishing`` status
        """
        job = self.get_job(job_id)
        self.transition(job, JobStatus.PUBLISHING, message="Publishing to the canvas site")

        task = asyncio.create_task(self._run_publish(job, title))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        self.logger.info("Publish started", job_id=job.job_id, title=title)
        return job

    async def publish(self, job_id: str, title: Optional[str] = None) -> GenerationJob:
        """Publish and wait for the outcome."""
        job = self.get_job(job_id)
        self.transition(job, JobStatus.PUBLISHING, message="Publishing to the canvas site")
        await self._run_publish(job, title)
        return job

    async def _run_publish(self, job: GenerationJob, title: Optional[str]) -> None:
        try:
            result = await self.engine.draw_and_publish(job.grid, title=title, prompt=job.prompt)
        except ReplayError as e:
            self.transition(job, JobStatus.FAILED, error=str(e), message=None)
            self.logger.error(
                "Publish failed",
                job_id=job.job_id,
                error=str(e),
                painted_cells=len(e.completed_actions),
            )
            return
        except Exception as e:
            self.transition(job, JobStatus.FAILED, error=str(e), message=None)
            self.logger.error("Publish crashed", job_id=job.job_id, error=str(e), exc_info=True)
            return

        message = None if result.url else SOFT_FAILURE_MESSAGE
        self.transition(job, JobStatus.DONE, url=result.url, message=message)
        self.logger.info(
            "Publish finished",
            job_id=job.job_id,
            url=result.url,
            painted_cells=result.painted_cells,
        )

    async def close(self) -> None:
        """Wait for in-flight publishes to finish."""
        if self._tasks:
            self.logger.info("Waiting for publishes", count=len(self._tasks))
            await asyncio.gather(*self._tasks, return_exceptions=True)
