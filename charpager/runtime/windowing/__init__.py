"""Windowed pagination over a fixed-order remote API.

Architecture:
    - definitions.py: FetchPolicy, FetchPlan and sizing constants
    - planners.py: window planning and post-fetch extraction
    - telemetry.py: structured logging

The remote API pages in one fixed ascending order with a fixed page size;
the planner maps any UI page, in either sort order, onto the smallest
contiguous run of remote pages that covers it.
"""

from __future__ import annotations

from .definitions import (
    DEBOUNCE_SECONDS,
    PAGE_SIZE,
    TIMEOUT_SECONDS,
    FetchPlan,
    FetchPolicy,
    total_pages_for,
)
from .planners import WindowPlanner, extract_window, merge_pages, plan_fetch_window

__all__ = [
    "PAGE_SIZE",
    "DEBOUNCE_SECONDS",
    "TIMEOUT_SECONDS",
    "FetchPlan",
    "FetchPolicy",
    "WindowPlanner",
    "extract_window",
    "merge_pages",
    "plan_fetch_window",
    "total_pages_for",
]
