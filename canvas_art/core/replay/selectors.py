"""
Ranked Selectors
================

Tie-break policy for picking one button among several near-duplicates
(the canvas site shows two "Publish" buttons once its modal is open).

A ``RankedSelector`` holds matchers in priority order; the first matcher that
returns a candidate wins.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from canvas_art.config.settings import Settings


@dataclass(frozen=True)
class ButtonCandidate:
    """A button found on the page."""

    index: int
    text: str = ""
    element_id: Optional[str] = None
    y: Optional[float] = None


class CandidateMatcher(ABC):
    """Picks at most one candidate."""

    name = "base"

    @abstractmethod
    def match(self, candidates: Sequence[ButtonCandidate]) -> Optional[ButtonCandidate]:
        pass


class ExactIdMatcher(CandidateMatcher):
    name = "exact_id"

    def __init__(self, element_id: str):
        self.element_id = element_id

    def match(self, candidates: Sequence[ButtonCandidate]) -> Optional[ButtonCandidate]:
        for candidate in candidates:
            if candidate.element_id == self.element_id:
                return candidate
        return None


class FirstInDocumentMatcher(CandidateMatcher):
    name = "first_in_document"

    def match(self, candidates: Sequence[ButtonCandidate]) -> Optional[ButtonCandidate]:
        return min(candidates, key=lambda c: c.index, default=None)


class LastInDocumentMatcher(CandidateMatcher):
    name = "last_in_document"

    def match(self, candidates: Sequence[ButtonCandidate]) -> Optional[ButtonCandidate]:
        return max(candidates, key=lambda c: c.index, default=None)


class MaxVerticalPositionMatcher(CandidateMatcher):
    """Lowest button on screen; candidates without a layout box are ignored."""

    name = "max_vertical_position"

    def match(self, candidates: Sequence[ButtonCandidate]) -> Optional[ButtonCandidate]:
        placed = [c for c in candidates if c.y is not None]
        # Equal y keeps the earlier button
        return max(placed, key=lambda c: (c.y, -c.index), default=None)


class RankedSelector:
    """Ordered matchers; the first hit wins."""

    def __init__(self, matchers: Sequence[CandidateMatcher]):
        if not matchers:
            raise ValueError("RankedSelector needs at least one matcher")
        self.matchers: List[CandidateMatcher] = list(matchers)

    @property
    def names(self) -> List[str]:
        return [matcher.name for matcher in self.matchers]

    def choose(self, candidates: Sequence[ButtonCandidate]) -> Optional[ButtonCandidate]:
        if not candidates:
            return None
        for matcher in self.matchers:
            chosen = matcher.match(candidates)
            if chosen is not None:
                return chosen
        return None


def initiate_publish_selector(settings: Settings) -> RankedSelector:
    """Policy for the toolbar button that opens the publish modal."""
    if settings.publish_tie_break == "lowest":
        return RankedSelector([MaxVerticalPositionMatcher(), FirstInDocumentMatcher()])
    return RankedSelector([FirstInDocumentMatcher()])


def confirm_publish_selector(settings: Settings) -> RankedSelector:
    """Policy for the modal's own confirm button."""
    matchers: List[CandidateMatcher] = []
    if settings.confirm_button_id:
        matchers.append(ExactIdMatcher(settings.confirm_button_id))
    matchers.append(LastInDocumentMatcher())
    return RankedSelector(matchers)
