"""
Replay Errors
=============

Failures raised while reproducing a grid on the canvas site.
"""

from typing import List, Optional

from canvas_art.models.schemas import PaintAction


class ReplayError(Exception):
    """Exception raised when a replay run fails."""

    def __init__(self, message: str, completed_actions: Optional[List[PaintAction]] = None):
        super().__init__(message)
        self.completed_actions: List[PaintAction] = list(completed_actions or [])


class ReplayDiscoveryError(ReplayError):
    """An expected control was not found on the page."""

    pass


class ReplayTimeoutError(ReplayError):
    """Navigation or an observed condition exceeded its bound."""

    pass
