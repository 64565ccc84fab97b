"""Fetch coordinator: the single owner of paging state.

Turns page and sort-order changes into debounced, cancellable fetch batches
and publishes one consistent ``SessionState`` per outcome.

Request cycle::

    request_page()  -> publish loading state, (re)start debounce timer
    debounce fires  -> new epoch, cancel previous batch, start deadline
    batch           -> probe page 1 if totals unknown, plan, fetch pages
    outcome         -> publish only if the batch's epoch is still current

Architecture:
    Two independent timers gate each cycle. The debounce timer coalesces a
    burst of requests into one dispatch; the deadline timer starts at
    dispatch and fires the batch's cancel token with ``CancelReason.TIMEOUT``.
    All state changes happen on the event loop thread, so no locks are used.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from time import perf_counter
from typing import Protocol

from ..core.enums import CancelReason, SortOrder
from ..core.exceptions import PageNotFoundError
from ..models import Character, RemotePageResult, SessionState
from .cancellation import CancelToken
from .classifier import classify_error
from .windowing import FetchPolicy, WindowPlanner
from .windowing.telemetry import log_batch_complete, log_batch_error, log_result_discarded

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]


class PageSource(Protocol):
    """Anything that can fetch one remote page under a cancel token."""

    async def fetch_page(
        self, page: int, token: CancelToken | None = None
    ) -> RemotePageResult: ...


@dataclass(frozen=True)
class _Outcome:
    items: Sequence[Character]
    total_count: int
    total_pages: int
    pages_fetched: int


class FetchCoordinator:
    """Coordinates windowed page fetches for one browsing session.

    Args:
        source: Remote page source (usually a ``CharacterClient``)
        policy: Debounce and deadline policy
        initial_page: First UI page, typically parsed from the URL
        sort_order: Initial sort order
        persist_page: Called with the UI page on every accepted request
    """

    def __init__(
        self,
        source: PageSource,
        *,
        policy: FetchPolicy | None = None,
        initial_page: int = 1,
        sort_order: SortOrder = SortOrder.NEWEST_FIRST,
        persist_page: Callable[[int], None] | None = None,
    ) -> None:
        self._source = source
        self._policy = policy or FetchPolicy()
        self._planner = WindowPlanner()
        self._persist_page = persist_page
        self._state = SessionState(ui_page=max(1, initial_page), sort_order=sort_order)
        self._listeners: dict[str, StateListener] = {}

        # Latest intent; written only by this coordinator on the loop thread
        self._epoch = 0
        self._token: CancelToken | None = None
        self._debounce_task: asyncio.Task | None = None
        self._batch_task: asyncio.Task | None = None
        self._batch_tasks: set[asyncio.Task] = set()
        self._closed = False

    # ----------------------
    # State access
    # ----------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def policy(self) -> FetchPolicy:
        return self._policy

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, callback: StateListener) -> str:
        """Register a listener for published states; returns its id."""
        sub_id = uuid.uuid4().hex
        self._listeners[sub_id] = callback
        return sub_id

    def unsubscribe(self, subscription_id: str) -> None:
        self._listeners.pop(subscription_id, None)

    # ----------------------
    # Commands
    # ----------------------
    def start(self) -> bool:
        """Request the initial page."""
        return self.request_page(self._state.ui_page)

    def request_page(self, ui_page: int, sort_order: SortOrder | str | None = None) -> bool:
        """Ask for a UI page, optionally in a new sort order.

        Publishes a loading state immediately, keeping the current items on
        screen, and schedules the fetch after the debounce delay. Must be
        called from a running event loop.

        Returns:
            False if the request was rejected (invalid or out of range page,
            unknown sort order, or coordinator closed); state is untouched
            in that case.
        """
        if self._closed:
            return False
        if isinstance(ui_page, bool) or not isinstance(ui_page, int) or ui_page < 1:
            logger.debug("Rejected invalid page", extra={"ui_page": ui_page})
            return False
        if sort_order is not None and not isinstance(sort_order, SortOrder):
            try:
                sort_order = SortOrder.from_string(sort_order)
            except (AttributeError, ValueError):
                logger.debug("Rejected invalid sort order", extra={"sort_order": sort_order})
                return False
        total_pages = self._state.total_pages
        # An empty dataset still has a (blank) page 1.
        if total_pages is not None and ui_page > max(total_pages, 1):
            logger.debug(
                "Rejected out of range page",
                extra={"ui_page": ui_page, "total_pages": total_pages},
            )
            return False

        self._schedule()
        self._publish(
            self._state.evolve(
                ui_page=ui_page,
                sort_order=sort_order or self._state.sort_order,
                is_loading=True,
                error=None,
                error_message=None,
            )
        )
        if self._persist_page is not None:
            try:
                self._persist_page(ui_page)
            except Exception:
                logger.exception("Failed to persist page %s", ui_page)
        return True

    def set_sort_order(self, sort_order: SortOrder | str) -> bool:
        """Change the sort order and refetch the current page."""
        return self.request_page(self._state.ui_page, sort_order)

    def dismiss_error(self) -> None:
        """Clear the visible error; never triggers a fetch."""
        if self._state.error is None:
            return
        self._publish(self._state.evolve(error=None, error_message=None))

    @property
    def can_go_prev(self) -> bool:
        return self._state.ui_page > 1

    @property
    def can_go_next(self) -> bool:
        total_pages = self._state.total_pages
        return total_pages is not None and self._state.ui_page < total_pages

    def go_prev(self) -> bool:
        return self.request_page(self._state.ui_page - 1)

    def go_next(self) -> bool:
        return self.request_page(self._state.ui_page + 1)

    def go_to_page(self, ui_page: int) -> bool:
        return self.request_page(ui_page)

    # ----------------------
    # Lifecycle
    # ----------------------
    async def wait_idle(self) -> None:
        """Wait until no debounce is pending and the current batch is done."""
        while True:
            pending = [
                t for t in (self._debounce_task, self._batch_task) if t is not None and not t.done()
            ]
            if not pending:
                return
            await asyncio.wait(pending)

    async def close(self) -> None:
        """Cancel pending and in-flight work; no state is published afterwards."""
        if self._closed:
            return
        self._closed = True
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        if self._token is not None:
            self._token.cancel(CancelReason.SHUTDOWN)
        tasks = [t for t in (self._debounce_task, *self._batch_tasks) if t is not None]
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("Coordinator closed", extra={"epoch": self._epoch})

    async def __aenter__(self) -> FetchCoordinator:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ----------------------
    # Scheduling
    # ----------------------
    def _schedule(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounce())

    def _debounce_pending(self) -> bool:
        return self._debounce_task is not None and not self._debounce_task.done()

    async def _debounce(self) -> None:
        await asyncio.sleep(self._policy.debounce_seconds)
        self._dispatch()

    def _dispatch(self) -> None:
        if self._closed:
            return
        self._epoch += 1
        if self._token is not None:
            self._token.cancel(CancelReason.SUPERSEDED)
        token = CancelToken(timeout=self._policy.timeout_seconds)
        self._token = token

        ui_page, sort_order = self._state.ui_page, self._state.sort_order
        logger.debug(
            "Dispatching fetch",
            extra={"epoch": self._epoch, "ui_page": ui_page, "sort_order": sort_order.value},
        )
        task = asyncio.get_running_loop().create_task(
            self._run_batch(self._epoch, token, ui_page, sort_order)
        )
        self._batch_task = task
        self._batch_tasks.add(task)
        task.add_done_callback(self._batch_tasks.discard)

    def _is_current(self, epoch: int) -> bool:
        return not self._closed and epoch == self._epoch

    # ----------------------
    # Batch execution
    # ----------------------
    async def _run_batch(
        self, epoch: int, token: CancelToken, ui_page: int, sort_order: SortOrder
    ) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.call_later(self._policy.timeout_seconds, token.cancel, CancelReason.TIMEOUT)
        started = perf_counter()
        try:
            outcome = await token.guard(self._fetch_window(epoch, token, ui_page, sort_order))
        except Exception as e:
            self._handle_failure(epoch, token, e)
            return
        finally:
            deadline.cancel()
        self._handle_success(epoch, outcome, (perf_counter() - started) * 1000.0)

    async def _fetch_window(
        self, epoch: int, token: CancelToken, ui_page: int, sort_order: SortOrder
    ) -> _Outcome:
        total_count = self._state.total_count
        total_pages = self._state.total_pages
        pages: dict[int, Sequence[Character]] = {}

        if total_count is None or total_pages is None:
            probe = await self._source.fetch_page(1, token)
            total_count, total_pages = probe.total_count, probe.total_pages
            pages[1] = probe.items
            if self._is_current(epoch):
                self._publish(self._state.evolve(total_count=total_count, total_pages=total_pages))
            if sort_order is SortOrder.OLDEST_FIRST and ui_page == 1:
                return _Outcome(probe.items, total_count, total_pages, pages_fetched=1)

        if ui_page > max(total_pages, 1):
            raise PageNotFoundError(
                f"Page {ui_page} is out of range (1-{max(total_pages, 1)})",
                page=ui_page,
                total_count=total_count,
                total_pages=total_pages,
            )
        if total_count == 0:
            return _Outcome((), total_count, total_pages, pages_fetched=len(pages))

        plan = self._planner.plan(ui_page, total_count, sort_order)
        missing = [p for p in plan.remote_pages if p not in pages]
        tasks = [asyncio.ensure_future(self._source.fetch_page(p, token)) for p in missing]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        for page, result in zip(missing, results):
            pages[page] = result.items

        items = self._planner.assemble(plan, pages, sort_order)
        return _Outcome(items, total_count, total_pages, pages_fetched=len(pages))

    def _handle_success(self, epoch: int, outcome: _Outcome, latency_ms: float) -> None:
        if not self._is_current(epoch):
            log_result_discarded(epoch=epoch, current_epoch=self._epoch, reason="superseded")
            return
        if self._debounce_pending():
            log_result_discarded(epoch=epoch, current_epoch=self._epoch, reason="newer_request")
            return

        self._publish(
            self._state.evolve(
                items=tuple(outcome.items),
                total_count=outcome.total_count,
                total_pages=outcome.total_pages,
                is_loading=False,
                error=None,
                error_message=None,
            )
        )
        log_batch_complete(
            epoch=epoch,
            pages_fetched=outcome.pages_fetched,
            items=len(outcome.items),
            latency_ms=latency_ms,
        )

    def _handle_failure(self, epoch: int, token: CancelToken, error: Exception) -> None:
        if not self._is_current(epoch):
            log_result_discarded(epoch=epoch, current_epoch=self._epoch, reason="superseded")
            return

        # A timeout-fired token wins over whatever error the abort surfaced as.
        if token.reason is CancelReason.TIMEOUT:
            classified = classify_error(token.error())
        else:
            classified = classify_error(error)
        if not classified.user_visible or self._debounce_pending():
            log_result_discarded(epoch=epoch, current_epoch=self._epoch, reason="cancelled")
            return

        changes: dict[str, object] = {
            "is_loading": False,
            "error": classified.category,
            "error_message": classified.message,
        }
        if isinstance(error, PageNotFoundError) and error.total_pages is not None:
            changes["total_count"] = error.total_count
            changes["total_pages"] = error.total_pages
        self._publish(self._state.evolve(**changes))
        log_batch_error(
            epoch=epoch,
            error_type=type(error).__name__,
            error_message=str(error),
            category=classified.category.value,
        )

    # ----------------------
    # Publication
    # ----------------------
    def _publish(self, state: SessionState) -> None:
        self._state = state
        for callback in list(self._listeners.values()):
            try:
                callback(state)
            except Exception as e:
                logger.error(f"Error in state listener: {e}", exc_info=True)
