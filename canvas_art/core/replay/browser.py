"""
Browser Session
===============

One Playwright Chromium session per replay run. The session is always torn
down when the context manager exits, whatever happened inside it.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from canvas_art.config.logging import get_logger
from canvas_art.config.settings import Settings, get_settings
from canvas_art.core.replay.errors import ReplayError

logger = get_logger(__name__)

CHROMIUM_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
]


def launch_options(settings: Settings) -> Dict[str, Any]:
    """Keyword arguments for ``chromium.launch``."""
    options: Dict[str, Any] = {
        "headless": settings.playwright_headless,
        "args": CHROMIUM_ARGS,
    }
    if settings.chromium_executable_path:
        options["executable_path"] = settings.chromium_executable_path
    return options


@asynccontextmanager
async def launch_browser_session(
    settings: Optional[Settings] = None,
) -> AsyncGenerator[Page, None]:
    """
    Launch Chromium and yield a fresh page.

    Raises:
        ReplayError: If the browser cannot be launched
    """
    settings = settings or get_settings()
    session_logger: Any = logger.bind(component="browser_session")  # structlog.BoundLoggerBase

    playwright = await async_playwright().start()
    browser = None
    try:
        try:
            browser = await playwright.chromium.launch(**launch_options(settings))
        except PlaywrightError as e:
            session_logger.error("Browser launch failed", error=str(e))
            raise ReplayError(f"Browser launch failed: {e}") from e

        context = await browser.new_context(
            viewport={"width": settings.viewport_width, "height": settings.viewport_height}
        )
        page = await context.new_page()
        page.set_default_timeout(settings.action_timeout_ms)
        session_logger.info("Browser session started", headless=settings.playwright_headless)
        yield page
    finally:
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                session_logger.warning("Browser close failed", error=str(e))
        await playwright.stop()
        session_logger.info("Browser session closed")
