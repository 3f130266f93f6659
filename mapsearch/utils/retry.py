"""Async retry helpers used by search providers."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")
AsyncFactory = Callable[[], Awaitable[T]]


async def retry_async(
    operation: AsyncFactory[T],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    should_retry: Callable[[Exception], bool] | None = None,
    delay_for: Callable[[Exception], float] | None = None,
    logger=None,
    operation_name: str = "operation",
) -> T:
    """Retry an async operation with linear backoff.

    ``should_retry`` decides whether a failure is worth another attempt; when
    omitted every exception is retried. ``delay_for`` overrides ``base_delay``
    per failure, and the chosen delay is multiplied by the attempt number.
    """

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_attempts:
                raise
            if should_retry is not None and not should_retry(exc):
                raise
            step = delay_for(exc) if delay_for is not None else base_delay
            delay = step * attempt
            if logger is not None:
                logger.warning(
                    "retrying_operation",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay=delay,
                    error=str(exc),
                )
            await asyncio.sleep(delay)
            attempt += 1


__all__ = ["retry_async"]
