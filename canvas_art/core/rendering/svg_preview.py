"""
SVG Preview
===========

Render a quantized grid as standalone SVG markup for review before publishing.
Cell ``(row, col)`` is drawn at ``(col * cell_size, row * cell_size)``, matching
the row-major addressing used when replaying on the canvas site.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import jinja2

from canvas_art.config.logging import get_logger
from canvas_art.config.settings import get_settings
from canvas_art.core.palette import BACKGROUND_INDEX, PALETTE, Palette
from canvas_art.models.schemas import Grid

logger = get_logger(__name__)

PREVIEW_STYLES = ("backdrop", "explicit")


class SVGPreviewError(Exception):
    """Exception raised when preview rendering fails."""

    pass


class SVGPreviewRenderer:
    """Jinja2-based SVG preview renderer."""

    def __init__(self, palette: Palette = PALETTE, cell_size: int = 10, style: str = "backdrop"):
        if style not in PREVIEW_STYLES:
            raise SVGPreviewError(f"Unknown preview style: {style}")
        self.palette = palette
        self.cell_size = cell_size
        self.style = style
        self._setup_jinja2_environment()

    def _setup_jinja2_environment(self) -> None:
        """Setup Jinja2 template environment."""
        template_dir = Path(__file__).parent / "templates"
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            autoescape=jinja2.select_autoescape(["html", "xml", "svg"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _cells(self, grid: Grid) -> List[Dict[str, Any]]:
        cells = []
        for y, row in enumerate(grid.cells):
            for x, index in enumerate(row):
                if index == BACKGROUND_INDEX and self.style == "backdrop":
                    continue
                cells.append(
                    {
                        "x": x * self.cell_size,
                        "y": y * self.cell_size,
                        "fill": self.palette[index].hex,
                    }
                )
        return cells

    def render(self, grid: Grid) -> str:
        """
        Render ``grid`` to SVG markup.

        Args:
            grid: Quantized grid

        Returns:
            SVG document as a string
        """
        if grid.palette_size > len(self.palette):
            raise SVGPreviewError(
                f"Grid uses {grid.palette_size} colors but the palette has {len(self.palette)}"
            )

        template = self.env.get_template("preview.svg")
        svg = template.render(
            width=grid.cols * self.cell_size,
            height=grid.rows * self.cell_size,
            cell_size=self.cell_size,
            backdrop=self.style == "backdrop",
            background=self.palette.background.hex,
            cells=self._cells(grid),
        )

        logger.debug("SVG preview rendered", rows=grid.rows, cols=grid.cols, style=self.style)
        return svg


def grid_to_svg(
    grid: Grid,
    palette: Palette = PALETTE,
    cell_size: Optional[int] = None,
    style: Optional[str] = None,
) -> str:
    """Render ``grid`` with configured defaults."""
    settings = get_settings()
    renderer = SVGPreviewRenderer(
        palette=palette,
        cell_size=cell_size or settings.preview_cell_size,
        style=style or settings.preview_style,
    )
    return renderer.render(grid)
