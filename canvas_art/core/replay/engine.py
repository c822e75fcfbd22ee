"""
Canvas Replay Engine
====================

Reproduces a grid on the collaborative canvas site by clicking its cell
controls, then publishes the artwork and scrapes the gallery URL.

The run is linear: navigate, discover controls, paint color by color,
open the publish modal, enter the title, confirm, scrape. Any failure aborts
the run; painted cells are not rolled back and nothing is retried.
"""

from itertools import groupby
from typing import Any, List, Optional, Set, Tuple
import time

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from canvas_art.config.logging import get_logger
from canvas_art.config.settings import Settings, get_settings
from canvas_art.core.palette import BACKGROUND_INDEX, PALETTE, Palette
from canvas_art.core.replay.browser import launch_browser_session
from canvas_art.core.replay.errors import ReplayDiscoveryError, ReplayError, ReplayTimeoutError
from canvas_art.core.replay.selectors import (
    ButtonCandidate,
    RankedSelector,
    confirm_publish_selector,
    initiate_publish_selector,
)
from canvas_art.core.replay.waits import poll_for_value, settle, wait_for_condition
from canvas_art.models.schemas import Grid, PaintAction, ReplayResult

logger = get_logger(__name__)

GALLERY_LINKS_JS = "els => els.map(e => e.href)"
DEFAULT_TITLE = "Untitled"


def plan_paint_actions(grid: Grid) -> List[PaintAction]:
    """
    Every cell activation needed to draw ``grid``.

    Colors are visited in ascending palette order and cells in row-major order
    within a color. Background cells and unused colors produce no actions.
    """
    actions: List[PaintAction] = []
    for color in sorted(grid.color_counts()):
        if color == BACKGROUND_INDEX:
            continue
        actions.extend(PaintAction(color=color, cell=cell) for cell in grid.cells_for(color))
    return actions


def resolve_title(title: Optional[str], prompt: Optional[str], max_length: int = 50) -> str:
    """Supplied title, else the truncated prompt, else a placeholder."""
    if title and title.strip():
        return title.strip()
    if prompt and prompt.strip():
        return prompt.strip()[:max_length].strip()
    return DEFAULT_TITLE


class CanvasReplayEngine:
    """Drives the canvas site through Playwright to publish a grid."""

    def __init__(self, settings: Optional[Settings] = None, palette: Palette = PALETTE):
        self.settings = settings or get_settings()
        self.palette = palette
        self.initiate_selector: RankedSelector = initiate_publish_selector(self.settings)
        self.confirm_selector: RankedSelector = confirm_publish_selector(self.settings)
        self.logger: Any = logger.bind(component="replay_engine")  # structlog.BoundLoggerBase

    async def draw_and_publish(
        self, grid: Grid, title: Optional[str] = None, prompt: Optional[str] = None
    ) -> ReplayResult:
        """
        Draw ``grid`` on the canvas site and publish it.

        Args:
            grid: Quantized grid to reproduce
            title: Artwork title
            prompt: Prompt used as the title fallback

        Returns:
            ReplayResult; ``url`` is None when publishing could not be confirmed

        Raises:
            ReplayError: If any step fails; the browser is closed first
        """
        async with launch_browser_session(self.settings) as page:
            resolved = resolve_title(title, prompt, self.settings.title_max_length)
            return await self.replay(page, grid, resolved)

    async def replay(self, page: Page, grid: Grid, title: str) -> ReplayResult:
        """Run the replay sequence on an open page."""
        start_time = time.monotonic()
        progress: List[PaintAction] = []
        self.logger.info(
            "Starting replay",
            target=self.settings.target_url,
            rows=grid.rows,
            cols=grid.cols,
            title=title,
        )

        try:
            await self._navigate(page)
            cells, cell_count, swatches, swatch_count = await self._discover_controls(page, grid)
            skipped = await self._paint(grid, cells, cell_count, swatches, swatch_count, progress)

            self.logger.info("Drawing complete, publishing", painted_cells=len(progress))
            title_input = await self._trigger_publish(page)
            await self._supply_title(page, title_input, title)
            url = await self._confirm_publish(page)
        except ReplayError as e:
            if not e.completed_actions:
                e.completed_actions = list(progress)
            self.logger.error("Replay failed", error=str(e), painted_cells=len(progress))
            raise
        except PlaywrightTimeoutError as e:
            self.logger.error("Replay timed out", error=str(e), painted_cells=len(progress))
            raise ReplayTimeoutError(f"Browser action timed out: {e}", progress) from e
        except PlaywrightError as e:
            self.logger.error(
                "Browser error during replay", error=str(e), painted_cells=len(progress)
            )
            raise ReplayError(f"Browser error during replay: {e}", progress) from e

        duration = time.monotonic() - start_time
        if url is None:
            self.logger.warning(
                "Published URL not found; publish may still have succeeded",
                gallery_host=self.settings.gallery_host,
            )
        else:
            self.logger.info("Published", url=url, duration=round(duration, 2))

        return ReplayResult(
            url=url,
            painted_cells=len(progress),
            skipped_cells=skipped,
            colors_used=sorted({action.color for action in progress}),
            actions=progress,
            duration=duration,
        )

    async def _navigate(self, page: Page) -> None:
        url = self.settings.target_url
        self.logger.info("Navigating to canvas site", url=url)
        try:
            await page.goto(
                url, wait_until="networkidle", timeout=self.settings.navigation_timeout_ms
            )
        except PlaywrightTimeoutError as e:
            raise ReplayTimeoutError(
                f"Navigation to {url} timed out after {self.settings.navigation_timeout_ms}ms"
            ) from e

        try:
            await page.locator(self.settings.cell_selector).first.wait_for(
                state="attached", timeout=self.settings.cell_wait_timeout_ms
            )
        except PlaywrightTimeoutError:
            self.logger.warning("Grid cells did not appear", selector=self.settings.cell_selector)

        # Client-side handlers attach after the markup renders
        await settle(self.settings.settle_delay_ms)

    async def _discover_controls(
        self, page: Page, grid: Grid
    ) -> Tuple[Locator, int, Locator, int]:
        cells = page.locator(self.settings.cell_selector)
        cell_count = await cells.count()
        self.logger.info("Found grid cells", count=cell_count)
        if cell_count == 0:
            raise ReplayDiscoveryError(
                "No grid cells found - page may not have loaded correctly or its layout changed"
            )

        expected = grid.rows * grid.cols
        if cell_count < expected:
            self.logger.warning(
                "Fewer grid cells than expected", found=cell_count, expected=expected
            )

        swatches = page.locator(self.settings.swatch_selector)
        swatch_count = await swatches.count()
        self.logger.info("Found color selectors", count=swatch_count)
        return cells, cell_count, swatches, swatch_count

    async def _paint(
        self,
        grid: Grid,
        cells: Locator,
        cell_count: int,
        swatches: Locator,
        swatch_count: int,
        progress: List[PaintAction],
    ) -> int:
        skipped = 0
        for color, group in groupby(plan_paint_actions(grid), key=lambda action: action.color):
            actions = list(group)
            self.logger.info(
                "Drawing color",
                color=color,
                name=self.palette[color].name,
                pixels=len(actions),
            )
            await self._select_color(swatches, swatch_count, color)

            for action in actions:
                if action.cell >= cell_count:
                    skipped += 1
                    continue
                await cells.nth(action.cell).click()
                progress.append(action)
                await settle(self.settings.click_delay_ms)

        if skipped:
            self.logger.warning("Cells without a control were skipped", skipped=skipped)
        return skipped

    async def _select_color(self, swatches: Locator, swatch_count: int, color: int) -> None:
        if color >= swatch_count:
            raise ReplayDiscoveryError(
                f"No color selector for palette index {color} ({self.palette[color].name}); "
                f"found {swatch_count} selectors"
            )

        swatch = swatches.nth(color)
        await swatch.click()

        if await swatch.get_attribute("aria-checked") is None:
            # Selection state is not observable
            await settle(self.settings.swatch_delay_ms)
            return

        async def is_selected() -> bool:
            return await swatch.get_attribute("aria-checked") == "true"

        await wait_for_condition(
            is_selected,
            self.settings.swatch_wait_timeout_ms,
            self.settings.poll_interval_ms,
            description=f"color selector {color} to be selected",
        )

    async def _collect_buttons(self, page: Page) -> Tuple[Locator, List[ButtonCandidate]]:
        buttons = page.locator("button", has_text=self.settings.publish_button_text)
        candidates: List[ButtonCandidate] = []
        for index in range(await buttons.count()):
            button = buttons.nth(index)
            box = await button.bounding_box()
            candidates.append(
                ButtonCandidate(
                    index=index,
                    text=(await button.inner_text()).strip(),
                    element_id=await button.get_attribute("id"),
                    y=box["y"] if box else None,
                )
            )
        return buttons, candidates

    async def _choose_button(self, page: Page, selector: RankedSelector, purpose: str) -> Locator:
        buttons, candidates = await self._collect_buttons(page)
        chosen = selector.choose(candidates)
        if chosen is None:
            raise ReplayDiscoveryError(
                f"No '{self.settings.publish_button_text}' button found to {purpose}"
            )
        self.logger.debug(
            "Button chosen",
            purpose=purpose,
            index=chosen.index,
            candidates=len(candidates),
            policy=selector.names,
        )
        return buttons.nth(chosen.index)

    async def _trigger_publish(self, page: Page) -> Locator:
        await settle(self.settings.pre_publish_delay_ms)
        button = await self._choose_button(page, self.initiate_selector, "open the publish dialog")
        await button.click()

        title_input = page.locator(self.settings.title_input_selector).first
        try:
            await title_input.wait_for(state="visible", timeout=self.settings.publish_settle_ms)
        except PlaywrightTimeoutError as e:
            raise ReplayDiscoveryError("Title input did not appear after opening publish") from e
        return title_input

    async def _supply_title(self, page: Page, title_input: Locator, title: str) -> None:
        self.logger.info("Entering title", title=title)
        await title_input.click(click_count=3)
        await page.keyboard.type(title)

    async def _gallery_links(self, page: Page) -> List[str]:
        hrefs = await page.eval_on_selector_all("a[href]", GALLERY_LINKS_JS)
        return [href for href in hrefs if href and self.settings.gallery_host in href]

    async def _confirm_publish(self, page: Page) -> Optional[str]:
        existing: Set[str] = set(await self._gallery_links(page))

        button = await self._choose_button(page, self.confirm_selector, "confirm publishing")
        await button.click()

        async def new_gallery_link() -> Optional[str]:
            for href in await self._gallery_links(page):
                if href not in existing:
                    return href
            return None

        url = await poll_for_value(
            new_gallery_link, self.settings.confirm_settle_ms, self.settings.poll_interval_ms
        )
        if url is None:
            links = await self._gallery_links(page)
            url = links[0] if links else None
        return url


async def draw_and_publish(
    grid: Grid,
    title: Optional[str] = None,
    prompt: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ReplayResult:
    """Draw and publish ``grid`` with a fresh engine."""
    engine = CanvasReplayEngine(settings)
    return await engine.draw_and_publish(grid, title=title, prompt=prompt)
