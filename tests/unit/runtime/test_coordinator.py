"""Unit tests for FetchCoordinator with a fake page source."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from charpager.core import (
    ErrorCategory,
    NetworkError,
    ProviderError,
    RateLimitError,
    SortOrder,
)
from charpager.models import Character, RemotePageResult, SessionState
from charpager.runtime import CancelToken, FetchCoordinator, FetchPolicy
from charpager.utils import QueryPagePersistence

FAST = FetchPolicy(debounce_seconds=0.01, timeout_seconds=0.2)
BASE_TIME = datetime(2017, 11, 4, tzinfo=UTC)


def make_character(character_id: int) -> Character:
    return Character(
        id=character_id,
        name=f"Character {character_id}",
        status="Alive",
        created=BASE_TIME + timedelta(minutes=character_id),
    )


class FakePageSource:
    """Serves ids 1..total_count in ascending remote pages of 20.

    ``gates`` hold a page until released, ``hang`` never answers,
    ``errors`` raise instead of answering.
    """

    def __init__(self, total_count: int = 826, page_size: int = 20) -> None:
        self.total_count = total_count
        self.page_size = page_size
        self.calls: list[int] = []
        self.gates: dict[int, asyncio.Event] = {}
        self.hang: set[int] = set()
        self.errors: dict[int, Exception] = {}

    async def fetch_page(self, page: int, token: CancelToken | None = None) -> RemotePageResult:
        self.calls.append(page)
        if token is not None:
            return await token.guard(self._fetch(page))
        return await self._fetch(page)

    async def _fetch(self, page: int) -> RemotePageResult:
        gate = self.gates.get(page)
        if gate is not None:
            await gate.wait()
        if page in self.hang:
            await asyncio.sleep(3600)
        if page in self.errors:
            raise self.errors[page]
        start = (page - 1) * self.page_size
        end = min(start + self.page_size, self.total_count)
        return RemotePageResult(
            page=page,
            items=tuple(make_character(i + 1) for i in range(start, end)),
            total_count=self.total_count,
            total_pages=-(-self.total_count // self.page_size),
        )


def ids(state: SessionState) -> list[int]:
    return [c.id for c in state.items]


async def wait_for(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.001)


async def loaded(source: FakePageSource, **kwargs) -> FetchCoordinator:
    coordinator = FetchCoordinator(source, policy=FAST, **kwargs)
    assert coordinator.start()
    await coordinator.wait_idle()
    return coordinator


class TestInitialLoad:
    """Test the probe fetch and first publication."""

    @pytest.mark.asyncio
    async def test_newest_first_probe_then_tail_pages(self):
        """Test newest-first page 1 probes page 1 then fetches pages 41-42."""
        source = FakePageSource(826)
        async with await loaded(source) as coordinator:
            state = coordinator.state

            assert source.calls == [1, 41, 42]
            assert ids(state) == list(range(826, 806, -1))
            assert state.total_count == 826
            assert state.total_pages == 42
            assert not state.is_loading
            assert state.error is None

    @pytest.mark.asyncio
    async def test_oldest_first_page_one_uses_probe(self):
        """Test oldest-first page 1 is answered by the probe alone."""
        source = FakePageSource(826)
        async with await loaded(source, sort_order=SortOrder.OLDEST_FIRST) as coordinator:
            assert source.calls == [1]
            assert ids(coordinator.state) == list(range(1, 21))

    @pytest.mark.asyncio
    async def test_probe_page_is_reused_by_plan(self):
        """Test a plan that needs page 1 reuses the probe result."""
        source = FakePageSource(30)
        async with await loaded(source, initial_page=2) as coordinator:
            assert source.calls == [1]
            assert ids(coordinator.state) == list(range(10, 0, -1))

    @pytest.mark.asyncio
    async def test_initial_page_out_of_range_after_probe(self):
        """Test page 43 of 826 items reports NOT_FOUND with corrected totals."""
        source = FakePageSource(826)
        async with await loaded(source, initial_page=43) as coordinator:
            state = coordinator.state

            assert source.calls == [1]
            assert state.error is ErrorCategory.NOT_FOUND
            assert state.total_pages == 42
            assert state.total_count == 826
            assert not state.is_loading

    @pytest.mark.asyncio
    async def test_empty_dataset(self):
        """Test an empty dataset publishes no items and no error."""
        source = FakePageSource(0)
        async with await loaded(source) as coordinator:
            assert coordinator.state.items == ()
            assert coordinator.state.error is None
            assert coordinator.state.total_count == 0

    @pytest.mark.asyncio
    async def test_empty_dataset_rejects_pages_beyond_first(self):
        """Test a known empty dataset only accepts page 1."""
        source = FakePageSource(0)
        async with await loaded(source) as coordinator:
            published: list[SessionState] = []
            coordinator.subscribe(published.append)
            before = coordinator.state

            assert coordinator.request_page(5) is False
            assert coordinator.request_page(2) is False

            assert published == []
            assert coordinator.state is before
            assert coordinator.request_page(1) is True

    @pytest.mark.asyncio
    async def test_empty_dataset_initial_page_out_of_range(self):
        """Test an initial page beyond an empty dataset reports NOT_FOUND."""
        source = FakePageSource(0)
        async with await loaded(source, initial_page=5) as coordinator:
            state = coordinator.state

            assert source.calls == [1]
            assert state.error is ErrorCategory.NOT_FOUND
            assert state.items == ()
            assert state.total_count == 0
            assert state.total_pages == 0
            assert not state.is_loading

    @pytest.mark.asyncio
    async def test_windows_follow_remote_page_size(self):
        """Test oldest-first page 2 is exactly remote page 2."""
        source = FakePageSource(826)
        async with await loaded(
            source, sort_order=SortOrder.OLDEST_FIRST, initial_page=2
        ) as coordinator:
            assert source.calls == [1, 2]
            assert ids(coordinator.state) == list(range(21, 41))
            assert coordinator.state.error is None


class TestRequestPage:
    """Test request validation and the immediate loading state."""

    @pytest.mark.asyncio
    async def test_rejects_invalid_pages(self):
        """Test invalid pages are rejected without publishing."""
        source = FakePageSource(826)
        async with await loaded(source) as coordinator:
            published: list[SessionState] = []
            coordinator.subscribe(published.append)
            before = coordinator.state

            for bad in (0, -1, 1.5, True, "2", 43):
                assert coordinator.request_page(bad) is False

            assert published == []
            assert coordinator.state is before

    @pytest.mark.asyncio
    async def test_loading_state_keeps_previous_items(self):
        """Test an accepted request publishes loading without clearing items."""
        source = FakePageSource(826)
        async with await loaded(source) as coordinator:
            previous = ids(coordinator.state)

            assert coordinator.request_page(2)
            state = coordinator.state

            assert state.ui_page == 2
            assert state.is_loading
            assert ids(state) == previous

            await coordinator.wait_idle()
            assert ids(coordinator.state) == list(range(806, 786, -1))

    @pytest.mark.asyncio
    async def test_debounce_collapses_burst(self):
        """Test repeated requests within the debounce window dispatch once."""
        source = FakePageSource(826)
        async with await loaded(source, sort_order=SortOrder.OLDEST_FIRST) as coordinator:
            epoch = coordinator.epoch
            source.calls.clear()

            coordinator.request_page(3)
            coordinator.request_page(3)
            await coordinator.wait_idle()

            assert coordinator.epoch == epoch + 1
            assert source.calls == [3]

    @pytest.mark.asyncio
    async def test_burst_dispatches_only_last_page(self):
        """Test only the final page of a burst is fetched."""
        source = FakePageSource(826)
        async with await loaded(source, sort_order=SortOrder.OLDEST_FIRST) as coordinator:
            source.calls.clear()

            for page in (2, 3, 4, 5):
                coordinator.request_page(page)
            await coordinator.wait_idle()

            assert source.calls == [5]
            assert coordinator.state.ui_page == 5
            assert ids(coordinator.state) == list(range(81, 101))

    @pytest.mark.asyncio
    async def test_persist_page_replaces_query(self):
        """Test accepted requests are mirrored into the query string."""
        source = FakePageSource(826)
        persistence = QueryPagePersistence("?page=1&q=rick")
        async with await loaded(source, persist_page=persistence) as coordinator:
            coordinator.request_page(4)
            assert coordinator.request_page(99) is False
            await coordinator.wait_idle()

            assert persistence.query == "page=4&q=rick"


class TestRaceSafety:
    """Test that only the latest request may publish."""

    @pytest.mark.asyncio
    async def test_newer_request_supersedes_in_flight_batch(self):
        """Test B's items win while A's batch is still in flight."""
        source = FakePageSource(826)
        async with await loaded(source, sort_order=SortOrder.OLDEST_FIRST) as coordinator:
            published: list[SessionState] = []
            coordinator.subscribe(published.append)
            source.gates[5] = asyncio.Event()

            coordinator.request_page(5)
            await wait_for(lambda: 5 in source.calls)
            coordinator.request_page(7)
            await coordinator.wait_idle()
            source.gates[5].set()
            await asyncio.sleep(0.02)

            state = coordinator.state
            assert state.ui_page == 7
            assert ids(state) == list(range(121, 141))
            assert all(ids(s) != list(range(81, 101)) for s in published)

    @pytest.mark.asyncio
    async def test_result_arriving_during_newer_debounce_is_discarded(self):
        """Test A's late result is dropped while B is still debouncing."""
        source = FakePageSource(826)
        policy = FetchPolicy(debounce_seconds=0.1, timeout_seconds=1.0)
        coordinator = FetchCoordinator(source, policy=policy, sort_order=SortOrder.OLDEST_FIRST)
        async with coordinator:
            coordinator.start()
            await coordinator.wait_idle()
            first_page = ids(coordinator.state)
            source.gates[5] = asyncio.Event()

            coordinator.request_page(5)
            await wait_for(lambda: 5 in source.calls)
            coordinator.request_page(7)
            source.gates[5].set()
            await asyncio.sleep(0.01)

            assert coordinator.state.ui_page == 7
            assert coordinator.state.is_loading
            assert ids(coordinator.state) == first_page

            await coordinator.wait_idle()
            assert ids(coordinator.state) == list(range(121, 141))

    @pytest.mark.asyncio
    async def test_superseded_batch_is_cancelled(self):
        """Test dispatching a newer batch aborts the older network call."""
        source = FakePageSource(826)
        async with await loaded(source, sort_order=SortOrder.OLDEST_FIRST) as coordinator:
            source.hang.add(5)

            coordinator.request_page(5)
            await wait_for(lambda: 5 in source.calls)
            coordinator.request_page(6)
            await coordinator.wait_idle()

            assert coordinator.state.error is None
            assert coordinator.state.ui_page == 6
            assert ids(coordinator.state) == list(range(101, 121))


class TestErrors:
    """Test failure publication."""

    @pytest.mark.asyncio
    async def test_timeout_keeps_items(self):
        """Test a hung page publishes TIMEOUT and leaves items unchanged."""
        source = FakePageSource(826)
        policy = FetchPolicy(debounce_seconds=0.01, timeout_seconds=0.05)
        coordinator = FetchCoordinator(source, policy=policy, sort_order=SortOrder.OLDEST_FIRST)
        async with coordinator:
            coordinator.start()
            await coordinator.wait_idle()
            before = ids(coordinator.state)
            source.hang.add(3)

            coordinator.request_page(3)
            await coordinator.wait_idle()
            state = coordinator.state

            assert state.error is ErrorCategory.TIMEOUT
            assert not state.is_loading
            assert ids(state) == before
            assert state.ui_page == 3

    @pytest.mark.asyncio
    async def test_timeout_during_probe(self):
        """Test a hung probe also times out."""
        source = FakePageSource(826)
        source.hang.add(1)
        policy = FetchPolicy(debounce_seconds=0.01, timeout_seconds=0.05)
        async with FetchCoordinator(source, policy=policy) as coordinator:
            coordinator.start()
            await coordinator.wait_idle()

            assert coordinator.state.error is ErrorCategory.TIMEOUT
            assert coordinator.state.total_pages is None

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        """Test HTTP 429 publishes RATE_LIMITED."""
        source = FakePageSource(826)
        source.errors[41] = RateLimitError("Too many requests")
        async with await loaded(source) as coordinator:
            state = coordinator.state

            assert state.error is ErrorCategory.RATE_LIMITED
            assert state.error_message
            assert not state.is_loading
            assert state.total_pages == 42

    @pytest.mark.asyncio
    async def test_network_and_unknown(self):
        """Test network failures and unclassified errors."""
        source = FakePageSource(826)
        async with await loaded(source, sort_order=SortOrder.OLDEST_FIRST) as coordinator:
            source.errors[2] = NetworkError("connection refused")
            coordinator.request_page(2)
            await coordinator.wait_idle()
            assert coordinator.state.error is ErrorCategory.NETWORK

            source.errors[3] = ProviderError("Request failed (500)", status_code=500)
            coordinator.request_page(3)
            await coordinator.wait_idle()
            assert coordinator.state.error is ErrorCategory.UNKNOWN
            assert coordinator.state.error_message == "Request failed (500)"

    @pytest.mark.asyncio
    async def test_failed_page_cancels_siblings(self):
        """Test one failing page aborts the rest of the batch."""
        source = FakePageSource(826)
        source.errors[42] = RateLimitError("Too many requests")
        source.hang.add(41)
        async with await loaded(source) as coordinator:
            assert coordinator.state.error is ErrorCategory.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_dismiss_error(self):
        """Test dismissing clears only the error and does not refetch."""
        source = FakePageSource(826)
        source.errors[41] = RateLimitError("Too many requests")
        async with await loaded(source) as coordinator:
            epoch = coordinator.epoch
            calls = list(source.calls)

            coordinator.dismiss_error()
            await asyncio.sleep(0.03)

            state = coordinator.state
            assert state.error is None
            assert state.error_message is None
            assert state.ui_page == 1
            assert coordinator.epoch == epoch
            assert source.calls == calls

    @pytest.mark.asyncio
    async def test_dismiss_without_error_is_noop(self):
        """Test dismissing with no error publishes nothing."""
        source = FakePageSource(826)
        async with await loaded(source) as coordinator:
            published: list[SessionState] = []
            coordinator.subscribe(published.append)

            coordinator.dismiss_error()

            assert published == []


class TestSortAndNavigation:
    """Test sort changes and navigation helpers."""

    @pytest.mark.asyncio
    async def test_sort_change_refetches_same_page(self):
        """Test switching to oldest-first reloads page 1 in ascending order."""
        source = FakePageSource(826)
        async with await loaded(source) as coordinator:
            source.calls.clear()

            assert coordinator.set_sort_order(SortOrder.OLDEST_FIRST)
            assert coordinator.state.sort_order is SortOrder.OLDEST_FIRST
            await coordinator.wait_idle()

            assert source.calls == [1]
            assert ids(coordinator.state) == list(range(1, 21))
            assert coordinator.state.ui_page == 1

    @pytest.mark.asyncio
    async def test_sort_order_string_is_parsed(self):
        """Test a sort order alias is stored as the SortOrder member."""
        source = FakePageSource(826)
        async with await loaded(source) as coordinator:
            assert coordinator.set_sort_order("oldest")
            assert coordinator.state.sort_order is SortOrder.OLDEST_FIRST
            await coordinator.wait_idle()

            assert ids(coordinator.state) == list(range(1, 21))

    @pytest.mark.asyncio
    async def test_rejects_unknown_sort_order(self):
        """Test unknown sort orders are rejected without publishing."""
        source = FakePageSource(826)
        async with await loaded(source) as coordinator:
            published: list[SessionState] = []
            coordinator.subscribe(published.append)
            before = coordinator.state

            assert coordinator.request_page(1, "sideways") is False
            assert coordinator.request_page(1, 3) is False
            assert coordinator.set_sort_order("") is False

            assert published == []
            assert coordinator.state is before

    @pytest.mark.asyncio
    async def test_navigation_helpers(self):
        """Test prev/next availability and movement."""
        source = FakePageSource(45)
        async with await loaded(source) as coordinator:
            assert not coordinator.can_go_prev
            assert coordinator.can_go_next
            assert coordinator.go_prev() is False

            assert coordinator.go_to_page(3)
            await coordinator.wait_idle()
            assert ids(coordinator.state) == [5, 4, 3, 2, 1]
            assert not coordinator.can_go_next
            assert coordinator.go_next() is False

            assert coordinator.go_prev()
            await coordinator.wait_idle()
            assert coordinator.state.ui_page == 2
            assert ids(coordinator.state) == list(range(25, 5, -1))

    @pytest.mark.asyncio
    async def test_can_go_next_unknown_total(self):
        """Test next is unavailable until the total is known."""
        coordinator = FetchCoordinator(FakePageSource(826), policy=FAST)

        assert not coordinator.can_go_next
        await coordinator.close()


class TestLifecycle:
    """Test subscription and teardown."""

    @pytest.mark.asyncio
    async def test_close_cancels_pending_debounce(self):
        """Test closing before the debounce fires dispatches nothing."""
        source = FakePageSource(826)
        coordinator = FetchCoordinator(source, policy=FetchPolicy(debounce_seconds=0.05))
        coordinator.start()

        await coordinator.close()
        await asyncio.sleep(0.08)

        assert source.calls == []
        assert coordinator.epoch == 0
        assert coordinator.closed

    @pytest.mark.asyncio
    async def test_close_aborts_in_flight_and_stops_publishing(self):
        """Test closing mid-batch aborts it and publishes nothing further."""
        source = FakePageSource(826)
        source.hang.add(1)
        coordinator = FetchCoordinator(source, policy=FAST)
        published: list[SessionState] = []
        coordinator.subscribe(published.append)
        coordinator.start()
        await wait_for(lambda: source.calls == [1])
        count = len(published)

        await coordinator.close()
        await coordinator.close()
        await asyncio.sleep(0.03)

        assert len(published) == count
        assert coordinator.request_page(2) is False

    @pytest.mark.asyncio
    async def test_unsubscribe_and_listener_errors(self):
        """Test a failing listener does not break publication."""
        source = FakePageSource(826)
        received: list[SessionState] = []

        def broken(state: SessionState) -> None:
            raise RuntimeError("listener failed")

        coordinator = FetchCoordinator(source, policy=FAST)
        coordinator.subscribe(broken)
        sub_id = coordinator.subscribe(received.append)
        async with coordinator:
            coordinator.start()
            await coordinator.wait_idle()
            assert received[-1] is coordinator.state

            coordinator.unsubscribe(sub_id)
            coordinator.request_page(2)
            await coordinator.wait_idle()

            assert received[-1] is not coordinator.state
