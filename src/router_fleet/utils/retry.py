"""
Bounded exponential backoff for transient RPC failures
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from router_fleet.exceptions import RpcUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 1.0,
    label: str = "rpc call",
) -> T:
    """Run *operation*, retrying on RpcUnavailable.

    The delay before retry ``n`` is ``base_delay * 2 ** (n - 1)``. The last
    RpcUnavailable is re-raised once attempts are exhausted; any other
    exception propagates immediately.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except RpcUnavailable as e:
            if attempt == attempts:
                logger.error("%s failed after %d attempt(s): %s", label, attempts, e)
                raise
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(
                "%s unavailable (attempt %d/%d): %s, retrying in %.1fs",
                label,
                attempt,
                attempts,
                e,
                delay,
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
