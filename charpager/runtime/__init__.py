"""Runtime: cancellation, error classification, windowing and coordination."""

from .cancellation import CancelToken
from .classifier import DEFAULT_MESSAGES, ClassifiedError, classify_error
from .coordinator import FetchCoordinator, PageSource, StateListener
from .windowing import (
    PAGE_SIZE,
    FetchPlan,
    FetchPolicy,
    WindowPlanner,
    extract_window,
    plan_fetch_window,
    total_pages_for,
)

__all__ = [
    "CancelToken",
    "ClassifiedError",
    "DEFAULT_MESSAGES",
    "classify_error",
    "FetchCoordinator",
    "PageSource",
    "StateListener",
    "PAGE_SIZE",
    "FetchPlan",
    "FetchPolicy",
    "WindowPlanner",
    "extract_window",
    "plan_fetch_window",
    "total_pages_for",
]
