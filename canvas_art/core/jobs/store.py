"""
Job Store
=========

Keyed storage for generation jobs with time-based retention. The clock is
injectable so eviction can be tested without waiting.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from canvas_art.config.logging import get_logger
from canvas_art.models.schemas import GenerationJob, utcnow

logger = get_logger(__name__)

Clock = Callable[[], datetime]


class JobStore(ABC):
    """Abstract job store."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[GenerationJob]:
        """Job with ``job_id``, or None if unknown or expired."""
        pass

    @abstractmethod
    def put(self, job: GenerationJob) -> None:
        pass

    @abstractmethod
    def delete(self, job_id: str) -> bool:
        pass

    @abstractmethod
    def sweep_expired(self) -> int:
        """Drop expired jobs; returns how many were removed."""
        pass

    @abstractmethod
    def jobs(self) -> List[GenerationJob]:
        pass

    def __len__(self) -> int:
        return len(self.jobs())


class InMemoryJobStore(JobStore):
    """Process-local job store; jobs expire ``retention`` after creation."""

    def __init__(self, retention: timedelta = timedelta(hours=1), clock: Clock = utcnow):
        self.retention = retention
        self.clock = clock
        self._jobs: Dict[str, GenerationJob] = {}
        self.logger = logger.bind(component="job_store")

    def _expired(self, job: GenerationJob) -> bool:
        return self.clock() - job.created_at >= self.retention

    def get(self, job_id: str) -> Optional[GenerationJob]:
        job = self._jobs.get(job_id)
        if job is None:
            return None
        if self._expired(job):
            del self._jobs[job_id]
            return None
        return job

    def put(self, job: GenerationJob) -> None:
        self._jobs[job.job_id] = job

    def delete(self, job_id: str) -> bool:
        return self._jobs.pop(job_id, None) is not None

    def sweep_expired(self) -> int:
        expired = [job_id for job_id, job in self._jobs.items() if self._expired(job)]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            self.logger.info("Expired jobs removed", count=len(expired), remaining=len(self._jobs))
        return len(expired)

    def jobs(self) -> List[GenerationJob]:
        return [job for job in self._jobs.values() if not self._expired(job)]
