"""Structured logging for fetch planning and batch execution."""

from __future__ import annotations

import logging

from ...core.enums import SortOrder
from .definitions import FetchPlan

logger = logging.getLogger(__name__)


def log_fetch_plan(*, ui_page: int, sort_order: SortOrder, plan: FetchPlan) -> None:
    """Log creation of a fetch plan."""
    logger.debug(
        "fetch_plan_created",
        extra={
            "ui_page": ui_page,
            "sort_order": sort_order.value,
            "start_remote_page": plan.start_remote_page,
            "end_remote_page": plan.end_remote_page,
            "start_global_index": plan.start_global_index,
            "end_global_index": plan.end_global_index,
        },
    )


def log_batch_complete(
    *,
    epoch: int,
    pages_fetched: int,
    items: int,
    latency_ms: float | None = None,
) -> None:
    """Log a batch that was published."""
    logger.info(
        "fetch_batch_complete",
        extra={
            "epoch": epoch,
            "pages_fetched": pages_fetched,
            "items": items,
            "latency_ms": latency_ms,
        },
    )


def log_batch_error(
    *,
    epoch: int,
    error_type: str,
    error_message: str,
    category: str,
) -> None:
    """Log a batch that failed with a user-visible error."""
    logger.error(
        "fetch_batch_error",
        extra={
            "epoch": epoch,
            "error_type": error_type,
            "error_message": error_message,
            "category": category,
        },
    )


def log_result_discarded(*, epoch: int, current_epoch: int, reason: str) -> None:
    """Log a result or failure dropped because newer work superseded it."""
    logger.debug(
        "fetch_result_discarded",
        extra={"epoch": epoch, "current_epoch": current_epoch, "reason": reason},
    )
