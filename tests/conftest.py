"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides test settings, sample rasters and grids, and fake browser pages.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Generator, List

# Settings and logging are configured on import, so the environment comes first
os.environ.setdefault("CANVAS_ART_ENVIRONMENT", "testing")
os.environ.setdefault("CANVAS_ART_LOG_LEVEL", "DEBUG")
os.environ.setdefault("CANVAS_ART_STORAGE_PATH", tempfile.mkdtemp(prefix="canvas_art_test_"))

import pytest

import canvas_art.config.settings as settings_module
from canvas_art.config.settings import Settings
from canvas_art.core.palette import PALETTE
from canvas_art.models.schemas import Grid

from tests.utils.helpers import solid_png
from tests.utils.mocks import FakeClock, FakePage


class TestSettings(Settings):
    """Test-specific settings: no real waiting anywhere."""

    __test__ = False

    environment: str = "testing"
    debug: bool = True
    log_level: str = "DEBUG"
    image_source: str = "pollinations"
    fetch_retry_delay: float = 0.0
    fetch_attempts: int = 3
    settle_delay_ms: int = 0
    cell_wait_timeout_ms: int = 0
    swatch_delay_ms: int = 0
    swatch_wait_timeout_ms: int = 50
    click_delay_ms: int = 0
    pre_publish_delay_ms: int = 0
    publish_settle_ms: int = 0
    confirm_settle_ms: int = 0
    poll_interval_ms: int = 1


@pytest.fixture
def test_settings() -> TestSettings:
    """Test settings fixture."""
    return TestSettings()


@pytest.fixture(autouse=True)
def override_settings(test_settings: TestSettings) -> Generator[TestSettings, None, None]:
    """Install test settings as the global settings instance."""
    previous = settings_module.settings
    settings_module.settings = test_settings
    yield test_settings
    settings_module.settings = previous


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def retention() -> timedelta:
    return timedelta(hours=1)


@pytest.fixture
def black_png() -> bytes:
    return solid_png((480, 320), (0, 0, 0))


@pytest.fixture
def small_grid() -> Grid:
    """2x3 grid using two colors."""
    return Grid.from_rows([[0, 1, 2], [1, 0, 1]], palette_size=len(PALETTE))


@pytest.fixture
def sample_rows() -> List[List[int]]:
    rows = [[0] * 48 for _ in range(32)]
    for y in range(10, 20):
        for x in range(5, 15):
            rows[y][x] = 1
    rows[0][0] = 11
    rows[31][47] = 5
    return rows


@pytest.fixture
def sample_grid(sample_rows: List[List[int]]) -> Grid:
    return Grid.from_rows(sample_rows, palette_size=len(PALETTE))


@pytest.fixture
def fake_page(test_settings: TestSettings) -> FakePage:
    """Fake canvas page sized for ``small_grid``."""
    return FakePage(test_settings, cell_count=6)


# Pytest configuration
def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file paths."""
    for item in items:
        # Add markers based on file path
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
