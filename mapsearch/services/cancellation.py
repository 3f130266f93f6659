"""Cooperative cancellation for superseded searches."""

from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

from mapsearch.services.exceptions import SearchCancelled

T = TypeVar("T")


class CancellationToken:
    __slots__ = ("_cancelled", "reason")

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "superseded") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise SearchCancelled(self.reason or "cancelled")


async def guarded(token: CancellationToken, operation: Callable[[], Awaitable[T]]) -> T:
    """Run ``operation`` with a token check on both sides of the suspension."""

    token.raise_if_cancelled()
    result = await operation()
    token.raise_if_cancelled()
    return result


__all__ = ["CancellationToken", "guarded"]
