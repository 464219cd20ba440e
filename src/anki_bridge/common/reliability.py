from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from anki_bridge.errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    delay_ms: float,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Await ``operation`` until it succeeds or ``max_attempts`` is reached.

    max_attempts counts the first attempt. The delay between attempts is
    constant; the wait yields to the event loop. The last failure is re-raised.
    """
    if max_attempts < 1:
        raise ConfigurationError(f"max_attempts must be at least 1, got {max_attempts}")

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_attempts:
                logger.error(
                    f"Operation failed after {max_attempts} attempt(s): {e}",
                    extra={"attempts": max_attempts},
                )
                raise
            logger.warning(
                f"Attempt {attempt} failed, retrying in {delay_ms}ms: {e}",
                extra={"attempt": attempt, "max_attempts": max_attempts},
            )
            await sleep(delay_ms / 1000)
            attempt += 1

