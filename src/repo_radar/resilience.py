"""Deadline and fallback-chain helpers for upstream calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from .errors import RequestTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

Strategy = tuple[str, Callable[[], Awaitable[T]], float]


async def with_deadline(awaitable: Awaitable[T], seconds: float, label: str) -> T:
    """Await with a time budget; stop waiting and raise RequestTimeout on expiry."""
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        raise RequestTimeout(f"{label} timed out after {seconds:g}s") from exc


async def fallback_chain(
    strategies: Sequence[Strategy],
    default: T,
    label: str,
    level: int = logging.WARNING,
) -> T:
    """Try each time-boxed strategy in order; return the default if all fail."""
    for name, factory, seconds in strategies:
        try:
            return await with_deadline(factory(), seconds, f"{label} ({name})")
        except Exception as exc:
            logger.log(level, "%s: %s strategy failed: %s", label, name, exc)
    logger.log(level, "%s: all strategies failed, using default", label)
    return default


def remaining_budget(deadline: float, cap: float, margin: float = 0.0) -> float:
    """Seconds left before ``deadline`` (loop time) less ``margin``, at most ``cap``."""
    left = deadline - asyncio.get_running_loop().time() - margin
    return max(min(cap, left), 0.0)
