"""Cancellation for results a caller may stop caring about.

Neither helper interrupts the underlying work; they only stop the caller from
acting on a stale outcome (e.g. after the view that asked for it went away).

    token = CancelToken()
    studies = await client.fetch_studies(...)
    token.raise_if_canceled()

or, wrapping a single awaitable:

    op = make_cancelable(client.fetch_studies(...))
    ...
    op.cancel()
    await op.wait()  # raises CanceledError
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Generic, TypeVar

from .errors import CanceledError

__all__ = ["CancelToken", "Cancelable", "make_cancelable"]

T = TypeVar("T")


class CancelToken:
    """A shared flag checked by the caller before acting on a result."""

    def __init__(self) -> None:
        self._canceled = False

    @property
    def canceled(self) -> bool:
        return self._canceled

    def cancel(self) -> None:
        self._canceled = True

    def raise_if_canceled(self) -> None:
        if self._canceled:
            raise CanceledError("operation was canceled")


class Cancelable(Generic[T]):
    """An awaitable whose outcome becomes CanceledError once canceled.

    Must be created inside a running event loop. Both paths are redirected:
    a value and an exception raised by the wrapped awaitable are each
    replaced by CanceledError if cancel() was called before they were
    observed.
    """

    def __init__(self, awaitable: Awaitable[T], token: CancelToken | None = None) -> None:
        # Scheduled right away so the work proceeds whether or not anyone waits.
        self._future = asyncio.ensure_future(awaitable)
        self._future.add_done_callback(_retrieve_exception)
        self.token = token or CancelToken()

    def cancel(self) -> None:
        self.token.cancel()

    @property
    def canceled(self) -> bool:
        return self.token.canceled

    async def wait(self) -> T:
        try:
            result = await self._future
        except Exception as e:
            if self.token.canceled:
                raise CanceledError("operation was canceled") from e
            raise
        self.token.raise_if_canceled()
        return result

    def __await__(self):
        return self.wait().__await__()


def _retrieve_exception(future: asyncio.Future) -> None:
    # Marks the exception as seen so an abandoned failure is not reported at
    # garbage collection; wait() still re-raises it.
    if not future.cancelled():
        future.exception()


def make_cancelable(awaitable: Awaitable[T], token: CancelToken | None = None) -> Cancelable[T]:
    """Wrap `awaitable`; pass a shared token to cancel several operations at once."""
    return Cancelable(awaitable, token)
