"""Fetch-window planning.

Maps a UI page in either sort order onto the contiguous range of remote
pages that covers it, and cuts the window back out of the fetched pages.

Example (826 items, page size 20, newest first, UI page 1)::

    window  = [806, 826)
    remote  = pages 41..42  (global 800..825)
    slice   = merged[6:26], then reversed
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TypeVar

from ...core.enums import SortOrder
from .definitions import PAGE_SIZE, FetchPlan, total_pages_for
from .telemetry import log_fetch_plan

T = TypeVar("T")


def plan_fetch_window(
    ui_page: int,
    total_count: int,
    sort_order: SortOrder,
    page_size: int = PAGE_SIZE,
) -> FetchPlan:
    """Compute the remote pages and global window for one UI page.

    Args:
        ui_page: Requested UI page (1-indexed)
        total_count: Known total item count (> 0)
        sort_order: Presentation order of the window
        page_size: Remote and UI page size

    Returns:
        FetchPlan for the request

    Raises:
        ValueError: If ``total_count`` is not positive or ``ui_page`` is
            outside ``[1, total_pages]``
    """
    if total_count <= 0:
        raise ValueError("total_count must be known and > 0 to plan a window")
    last_page = total_pages_for(total_count, page_size)
    if not 1 <= ui_page <= last_page:
        raise ValueError(f"ui_page {ui_page} is outside [1, {last_page}]")

    if sort_order is SortOrder.OLDEST_FIRST:
        start = (ui_page - 1) * page_size
        end = min(start + page_size, total_count)
    else:
        # Newest first: UI page 1 is the tail of the ascending sequence.
        end = total_count - (ui_page - 1) * page_size
        start = max(0, end - page_size)

    return FetchPlan(
        start_remote_page=start // page_size + 1,
        end_remote_page=(end - 1) // page_size + 1,
        start_global_index=start,
        end_global_index=end,
        page_size=page_size,
    )


def merge_pages(plan: FetchPlan, pages: Mapping[int, Sequence[T]]) -> list[T]:
    """Concatenate fetched remote pages in ascending page order.

    Raises:
        KeyError: If a page of the plan is missing from ``pages``
    """
    merged: list[T] = []
    for page in plan.remote_pages:
        merged.extend(pages[page])
    return merged


def extract_window(plan: FetchPlan, merged: Sequence[T], sort_order: SortOrder) -> list[T]:
    """Cut the UI window out of the merged pages, newest-first if requested."""
    window = list(merged[plan.relative_slice])
    if sort_order is SortOrder.NEWEST_FIRST:
        window.reverse()
    return window


class WindowPlanner:
    """Plans and assembles UI windows over fixed-size remote pages."""

    @property
    def page_size(self) -> int:
        return PAGE_SIZE

    def total_pages(self, total_count: int) -> int:
        return total_pages_for(total_count, PAGE_SIZE)

    def plan(self, ui_page: int, total_count: int, sort_order: SortOrder) -> FetchPlan:
        plan = plan_fetch_window(ui_page, total_count, sort_order, PAGE_SIZE)
        log_fetch_plan(ui_page=ui_page, sort_order=sort_order, plan=plan)
        return plan

    def assemble(
        self, plan: FetchPlan, pages: Mapping[int, Sequence[T]], sort_order: SortOrder
    ) -> list[T]:
        """Merge fetched pages and extract the ordered window."""
        return extract_window(plan, merge_pages(plan, pages), sort_order)
