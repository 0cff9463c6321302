from __future__ import annotations
import asyncio, logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    backoff_s: float = 0.8,
    what: str = "call",
) -> T:
    """Await `fn()` up to `attempts` times, sleeping backoff_s * try between tries.

    The last exception is re-raised once attempts are exhausted.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")
    tries = 0
    while True:
        tries += 1
        try:
            return await fn()
        except Exception as e:
            if tries >= attempts:
                logger.error("%s failed after %d attempts: %s: %s", what, tries, type(e).__name__, e)
                raise
            logger.warning("%s failed (attempt %d/%d): %s: %s", what, tries, attempts, type(e).__name__, e)
            await asyncio.sleep(backoff_s * tries)
