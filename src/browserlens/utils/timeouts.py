"""Timeout race for network-bound operations."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar('T')


async def with_timeout(awaitable: Awaitable[T], seconds: float, operation: str) -> T:
    """Race ``awaitable`` against a timer.

    The operation is abandoned once the timer fires. The failure is a plain
    ``TimeoutError`` naming the operation; nothing is retried.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise TimeoutError(f'{operation} timed out after {seconds:g}s') from e
