"""Mapping of raw fetch failures to user-facing error categories.

Library exceptions are classified by type and ``status_code``. Message
inspection is only a fallback for foreign exceptions that expose no
structured status.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass

import aiohttp

from ..core.enums import ErrorCategory
from ..core.exceptions import (
    NetworkError,
    PageNotFoundError,
    ProviderError,
    RateLimitError,
    RequestCancelledError,
    RequestTimeoutError,
)

DEFAULT_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.RATE_LIMITED: "Too many requests. Please slow down and try again.",
    ErrorCategory.NOT_FOUND: "Page not found.",
    ErrorCategory.TIMEOUT: "Request timed out. Please try again.",
    ErrorCategory.NETWORK: "Network error. Please check your connection.",
    ErrorCategory.CANCELLED: "",
    ErrorCategory.UNKNOWN: "Unknown error occurred",
}

_STATUS_RE = re.compile(r"\((\d{3})\)")


@dataclass(frozen=True)
class ClassifiedError:
    category: ErrorCategory
    message: str

    @property
    def user_visible(self) -> bool:
        return self.category.user_visible


def _from_status(status: int | None) -> ErrorCategory | None:
    if status == 429:
        return ErrorCategory.RATE_LIMITED
    if status == 404:
        return ErrorCategory.NOT_FOUND
    return None


def _categorize(error: BaseException) -> ErrorCategory:
    if isinstance(error, RequestCancelledError | asyncio.CancelledError):
        return ErrorCategory.CANCELLED
    if isinstance(error, RequestTimeoutError | asyncio.TimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, RateLimitError):
        return ErrorCategory.RATE_LIMITED
    if isinstance(error, PageNotFoundError):
        return ErrorCategory.NOT_FOUND
    if isinstance(error, ProviderError):
        return _from_status(error.status_code) or ErrorCategory.UNKNOWN
    if isinstance(error, aiohttp.ClientResponseError):
        return _from_status(error.status) or ErrorCategory.UNKNOWN
    if isinstance(error, NetworkError | aiohttp.ClientConnectionError | ConnectionError):
        return ErrorCategory.NETWORK

    # No structured status available; inspect the message.
    text = str(error)
    match = _STATUS_RE.search(text)
    if match:
        by_status = _from_status(int(match.group(1)))
        if by_status is not None:
            return by_status
    lowered = text.lower()
    if "aborted" in lowered:
        return ErrorCategory.CANCELLED
    if "timed out" in lowered:
        return ErrorCategory.TIMEOUT
    if "failed to fetch" in lowered:
        return ErrorCategory.NETWORK
    return ErrorCategory.UNKNOWN


def classify_error(error: BaseException) -> ClassifiedError:
    """Classify a fetch failure.

    ``UNKNOWN`` keeps the raw message; every other category gets its
    default user-facing message. ``CANCELLED`` results must never be shown.
    """
    category = _categorize(error)
    if category is ErrorCategory.UNKNOWN:
        return ClassifiedError(category, str(error) or DEFAULT_MESSAGES[category])
    return ClassifiedError(category, DEFAULT_MESSAGES[category])
