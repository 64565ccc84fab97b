"""Cooperative cancellation shared by one fetch batch.

Every network call of a batch receives the same ``CancelToken``. Firing the
token aborts all of them; the reason decides which error they surface with.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from ..core.enums import CancelReason
from ..core.exceptions import RequestCancelledError, RequestTimeoutError

T = TypeVar("T")


class CancelToken:
    """One-shot cancellation signal.

    Only the first ``cancel()`` counts; later calls keep the original reason.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = asyncio.Event()
        self._reason: CancelReason | None = None
        self._timeout = timeout

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> CancelReason | None:
        return self._reason

    def cancel(self, reason: CancelReason = CancelReason.SUPERSEDED) -> None:
        if self._reason is not None:
            return
        self._reason = reason
        self._event.set()

    def error(self) -> Exception:
        """Exception describing why the token fired."""
        if self._reason is CancelReason.TIMEOUT:
            return RequestTimeoutError(
                f"Request timed out after {self._timeout:g} seconds"
                if self._timeout is not None
                else "Request timed out",
                timeout=self._timeout,
            )
        return RequestCancelledError(
            f"Request cancelled ({(self._reason or CancelReason.SUPERSEDED).value})",
            reason=self._reason or CancelReason.SUPERSEDED,
        )

    def raise_if_cancelled(self) -> None:
        if self._reason is not None:
            raise self.error()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        If the token fires, the underlying operation is cancelled and
        awaited before the token's error is raised.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise self.error()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        if task in done:
            return task.result()
        raise self.error()
