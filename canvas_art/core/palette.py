"""
Color Palette
=============

Fixed set of colors the canvas site can display, plus the nearest-color
classifier used by the quantizer.

Index 0 is the background / erase entry and is never painted.
"""

import math
from typing import Iterator, List, Sequence, Tuple

from canvas_art.models.schemas import PaletteEntry, RGB

BACKGROUND_INDEX = 0


def color_distance(a: Sequence[int], b: Sequence[int]) -> float:
    """Euclidean distance between two RGB triples."""
    return math.sqrt((a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2)


class Palette:
    """Immutable ordered collection of palette entries."""

    def __init__(self, entries: Sequence[PaletteEntry]):
        if len(entries) < 2:
            raise ValueError("A palette needs a background entry and at least one color")
        self._entries: Tuple[PaletteEntry, ...] = tuple(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> PaletteEntry:
        return self._entries[index]

    def __iter__(self) -> Iterator[PaletteEntry]:
        return iter(self._entries)

    @property
    def entries(self) -> Tuple[PaletteEntry, ...]:
        return self._entries

    @property
    def background(self) -> PaletteEntry:
        return self._entries[BACKGROUND_INDEX]

    def paint_indices(self) -> List[int]:
        """Indices of drawable colors in selector order."""
        return list(range(BACKGROUND_INDEX + 1, len(self._entries)))

    def nearest_index(self, rgb: Sequence[int], include_background: bool = True) -> int:
        """
        Index of the entry closest to ``rgb``.

        Ties resolve to the lowest index. With ``include_background`` false the
        background entry is not a candidate.
        """
        start = BACKGROUND_INDEX if include_background else BACKGROUND_INDEX + 1
        closest = start
        min_dist = math.inf
        for index in range(start, len(self._entries)):
            dist = color_distance(rgb, self._entries[index].rgb)
            if dist < min_dist:
                min_dist = dist
                closest = index
        return closest


def _entry(name: str, rgb: RGB) -> PaletteEntry:
    return PaletteEntry(name=name, rgb=rgb)


# Fluorescent protein colors offered by the canvas site, in selector order
PALETTE = Palette(
    [
        _entry("empty", (0, 0, 0)),
        _entry("sfGFP", (31, 234, 92)),
        _entry("mRFP1", (143, 36, 56)),
        _entry("mKO2", (179, 146, 35)),
        _entry("Venus", (106, 213, 0)),
        _entry("Azurite", (56, 103, 174)),
        _entry("mClover3", (64, 153, 69)),
        _entry("mJuniper", (28, 151, 141)),
        _entry("mTurquoise2", (19, 174, 167)),
        _entry("Electra2", (28, 88, 198)),
        _entry("mWasabi", (0, 147, 73)),
        _entry("mScarlet_I", (185, 71, 75)),
    ]
)


def find_closest_color(
    rgb: Sequence[int], palette: Palette = PALETTE, include_background: bool = True
) -> int:
    """Nearest palette index for a pixel."""
    return palette.nearest_index(rgb, include_background=include_background)
