"""Cancellable fixed-interval polling."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from avatarcast.errors import PollTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    is_terminal: Callable[[T], bool],
    *,
    interval: float,
    max_attempts: int,
    cancel_event: asyncio.Event | None = None,
    on_tick: Callable[[int, T], None] | None = None,
    label: str = "job",
) -> T:
    """Call ``fetch`` until ``is_terminal`` accepts its result.

    The first check happens immediately; later ones wait ``interval`` seconds
    after the previous one returned, so checks never overlap. Setting
    ``cancel_event`` (or cancelling the enclosing task) stops the loop with
    ``asyncio.CancelledError`` before another request is made.

    Raises
    ------
    PollTimeout
        When ``max_attempts`` checks returned non-terminal results.
    """
    for attempt in range(1, max_attempts + 1):
        if cancel_event is not None and cancel_event.is_set():
            raise asyncio.CancelledError
        result = await fetch()
        if is_terminal(result):
            logger.debug("%s reached a terminal status after %d checks", label, attempt)
            return result
        if on_tick is not None:
            on_tick(attempt, result)
        logger.debug("%s not finished (check %d/%d)", label, attempt, max_attempts)
        if attempt < max_attempts:
            await _sleep(interval, cancel_event)
    raise PollTimeout(max_attempts)


async def _sleep(interval: float, cancel_event: asyncio.Event | None) -> None:
    if cancel_event is None:
        await asyncio.sleep(interval)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=interval)
    except TimeoutError:
        return
    raise asyncio.CancelledError
