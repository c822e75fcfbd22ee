"""
Canvas Replay
=============

Playwright automation that draws a grid on the canvas site and publishes it.
"""

from canvas_art.core.replay.engine import CanvasReplayEngine, draw_and_publish
from canvas_art.core.replay.errors import ReplayDiscoveryError, ReplayError, ReplayTimeoutError

__all__ = [
    "CanvasReplayEngine",
    "draw_and_publish",
    "ReplayError",
    "ReplayDiscoveryError",
    "ReplayTimeoutError",
]
