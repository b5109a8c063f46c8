from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar


T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    found: bool
    value: Optional[T]
    attempts: int


async def retry_until_found(
    fetch: Callable[[], Awaitable[Optional[T]]],
    *,
    attempts: int,
    delay_seconds: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> RetryResult[T]:
    """Call ``fetch`` until it returns something, at most ``attempts`` times.

    Waits ``delay_seconds`` after every miss. Errors raised by ``fetch``
    propagate unchanged; only an empty result is retried.
    """
    for attempt in range(1, attempts + 1):
        value = await fetch()
        if value is not None:
            return RetryResult(found=True, value=value, attempts=attempt)
        await sleep(delay_seconds)
    logger.warning("retry.exhausted", extra={"attempts": attempts})
    return RetryResult(found=False, value=None, attempts=attempts)
