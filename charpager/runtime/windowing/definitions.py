"""Windowing policy and plan structures.

This module defines the constants and immutable structures shared by the
planner and the coordinator.
"""

from __future__ import annotations

from dataclasses import dataclass

PAGE_SIZE = 20
DEBOUNCE_SECONDS = 0.25
TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class FetchPolicy:
    """Timing policy for the fetch pipeline.

    The page size is fixed at ``PAGE_SIZE`` for both UI and remote pages.

    Attributes:
        debounce_seconds: Coalescing delay before a request is dispatched
        timeout_seconds: Hard deadline for a whole fetch batch, measured
            from dispatch
    """

    debounce_seconds: float = DEBOUNCE_SECONDS
    timeout_seconds: float = TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")


@dataclass(frozen=True)
class FetchPlan:
    """Remote pages to fetch and the global-index window to cut from them.

    Attributes:
        start_remote_page: First remote page to fetch (1-indexed, inclusive)
        end_remote_page: Last remote page to fetch (1-indexed, inclusive)
        start_global_index: First global index of the window (inclusive)
        end_global_index: Global index one past the window (exclusive)
        page_size: Remote page size the plan was computed with
    """

    start_remote_page: int
    end_remote_page: int
    start_global_index: int
    end_global_index: int
    page_size: int = PAGE_SIZE

    @property
    def remote_pages(self) -> range:
        return range(self.start_remote_page, self.end_remote_page + 1)

    @property
    def size(self) -> int:
        return self.end_global_index - self.start_global_index

    @property
    def merge_offset(self) -> int:
        """Global index of the first item in the merged remote pages."""
        return (self.start_remote_page - 1) * self.page_size

    @property
    def relative_slice(self) -> slice:
        """Slice of the merged remote pages that holds the window."""
        return slice(
            self.start_global_index - self.merge_offset,
            self.end_global_index - self.merge_offset,
        )


def total_pages_for(total_count: int, page_size: int = PAGE_SIZE) -> int:
    """Number of pages needed to hold ``total_count`` items."""
    if total_count <= 0:
        return 0
    return -(-total_count // page_size)
