"""
Condition Waits
===============

Bounded polling against the canvas page. A fixed ``settle`` delay is the
fallback wherever the page state cannot be observed.
"""

from typing import Awaitable, Callable, Optional, TypeVar
import asyncio

from canvas_art.core.replay.errors import ReplayTimeoutError

T = TypeVar("T")


async def settle(ms: int) -> None:
    """Fixed delay in milliseconds."""
    if ms > 0:
        await asyncio.sleep(ms / 1000)


async def wait_for_condition(
    predicate: Callable[[], Awaitable[bool]],
    timeout_ms: int,
    interval_ms: int = 100,
    description: str = "condition",
) -> None:
    """
    Poll ``predicate`` until it is true.

    Raises:
        ReplayTimeoutError: If ``timeout_ms`` elapses first
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000
    while True:
        if await predicate():
            return
        if loop.time() >= deadline:
            raise ReplayTimeoutError(f"Timed out after {timeout_ms}ms waiting for {description}")
        await asyncio.sleep(interval_ms / 1000)


async def poll_for_value(
    fetch: Callable[[], Awaitable[Optional[T]]],
    timeout_ms: int,
    interval_ms: int = 100,
) -> Optional[T]:
    """First non-None result of ``fetch`` within ``timeout_ms``, else None."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000
    while True:
        value = await fetch()
        if value is not None:
            return value
        if loop.time() >= deadline:
            return None
        await asyncio.sleep(interval_ms / 1000)
