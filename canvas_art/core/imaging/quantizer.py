"""
Grid Quantizer
==============

Downsamples a raster to the canvas grid and maps every cell to a palette index.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Type, Union
import io

from PIL import Image

from canvas_art.config.logging import get_logger
from canvas_art.config.settings import get_settings
from canvas_art.core.imaging.acquisition import InvalidImageError
from canvas_art.core.palette import BACKGROUND_INDEX, PALETTE, Palette
from canvas_art.models.schemas import Grid

logger = get_logger(__name__)


class BackgroundPolicy(ABC):
    """Decides which pixels are background and classifies the rest."""

    name = "base"
    include_background = True

    @abstractmethod
    def is_background(self, rgb: Sequence[int]) -> bool:
        pass

    def classify(self, rgb: Sequence[int], palette: Palette = PALETTE) -> int:
        if self.is_background(rgb):
            return BACKGROUND_INDEX
        return palette.nearest_index(rgb, include_background=self.include_background)


class DarkBackgroundPolicy(BackgroundPolicy):
    """Dark pixels are empty; everything else is painted."""

    name = "dark"
    include_background = False

    def __init__(self, threshold: float = 30):
        self.threshold = threshold

    def is_background(self, rgb: Sequence[int]) -> bool:
        return (rgb[0] + rgb[1] + rgb[2]) / 3 < self.threshold


class LightBackgroundPolicy(BackgroundPolicy):
    """Near-white pixels are empty; the rest may still snap to the background color."""

    name = "light"
    include_background = True

    def __init__(self, threshold: int = 240):
        self.threshold = threshold

    def is_background(self, rgb: Sequence[int]) -> bool:
        return rgb[0] > self.threshold and rgb[1] > self.threshold and rgb[2] > self.threshold


_POLICIES: Dict[str, Type[BackgroundPolicy]] = {
    DarkBackgroundPolicy.name: DarkBackgroundPolicy,
    LightBackgroundPolicy.name: LightBackgroundPolicy,
}


def get_background_policy(name: str) -> BackgroundPolicy:
    """Background policy registered under ``name``."""
    try:
        return _POLICIES[name]()
    except KeyError:
        raise ValueError(f"Unknown background policy: {name}") from None


def _open_raster(raster: Union[bytes, Image.Image]) -> Image.Image:
    if isinstance(raster, Image.Image):
        return raster.convert("RGB")
    try:
        with Image.open(io.BytesIO(raster)) as image:
            image.load()
            return image.convert("RGB")
    except OSError as e:
        raise InvalidImageError(f"Could not decode raster: {e}") from e


def quantize_image(
    image: Image.Image,
    rows: int,
    cols: int,
    policy: BackgroundPolicy,
    palette: Palette = PALETTE,
) -> Grid:
    """Stretch ``image`` to ``cols`` x ``rows`` and classify every pixel."""
    resized = image.resize((cols, rows), Image.Resampling.LANCZOS)
    pixels = resized.load()

    cells: List[List[int]] = []
    for y in range(rows):
        cells.append([policy.classify(pixels[x, y], palette) for x in range(cols)])

    return Grid.from_rows(cells, palette_size=len(palette))


def image_to_grid(
    raster: Union[bytes, Image.Image],
    rows: Optional[int] = None,
    cols: Optional[int] = None,
    policy: Optional[BackgroundPolicy] = None,
    palette: Palette = PALETTE,
) -> Grid:
    """
    Convert a raster image into a grid of palette indices.

    Args:
        raster: Encoded image bytes or a Pillow image
        rows: Grid rows, defaults to settings
        cols: Grid columns, defaults to settings
        policy: Background policy, defaults to settings
        palette: Palette to classify against

    Returns:
        Grid with one palette index per cell
    """
    settings = get_settings()
    rows = rows or settings.grid_rows
    cols = cols or settings.grid_cols
    policy = policy or get_background_policy(settings.background_policy)

    image = _open_raster(raster)
    grid = quantize_image(image, rows, cols, policy, palette)

    logger.info(
        "Image quantized",
        source_size=image.size,
        rows=rows,
        cols=cols,
        policy=policy.name,
        painted_cells=sum(grid.color_counts().values()),
    )
    return grid
