"""
Unit Tests for Job Store
========================

Tests for job retention with an injected clock.
"""

import pytest

from canvas_art.core.jobs.store import InMemoryJobStore
from canvas_art.models.schemas import GenerationJob


@pytest.fixture
def store(fake_clock, retention):
    return InMemoryJobStore(retention=retention, clock=fake_clock)


def make_job(clock, small_grid, prompt="fox") -> GenerationJob:
    return GenerationJob(prompt=prompt, grid=small_grid, created_at=clock())


class TestInMemoryJobStore:

    def test_put_and_get(self, store, fake_clock, small_grid):
        job = make_job(fake_clock, small_grid)
        store.put(job)
        assert store.get(job.job_id) is job
        assert len(store) == 1

    def test_unknown_job(self, store):
        assert store.get("missing") is None

    def test_job_kept_within_retention(self, store, fake_clock, small_grid):
        job = make_job(fake_clock, small_grid)
        store.put(job)
        fake_clock.advance(minutes=59, seconds=59)
        assert store.get(job.job_id) is job

    def test_job_expires_at_retention(self, store, fake_clock, small_grid):
        job = make_job(fake_clock, small_grid)
        store.put(job)
        fake_clock.advance(hours=1)
        assert store.get(job.job_id) is None
        assert len(store) == 0

    def test_sweep_expired(self, store, fake_clock, small_grid):
        old = make_job(fake_clock, small_grid, "old")
        store.put(old)
        fake_clock.advance(minutes=40)
        recent = make_job(fake_clock, small_grid, "recent")
        store.put(recent)
        fake_clock.advance(minutes=30)

        assert store.sweep_expired() == 1
        assert store.jobs() == [recent]
        assert store.sweep_expired() == 0

    def test_delete(self, store, fake_clock, small_grid):
        job = make_job(fake_clock, small_grid)
        store.put(job)
        assert store.delete(job.job_id) is True
        assert store.delete(job.job_id) is False
