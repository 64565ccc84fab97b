"""Core components."""

from .enums import CancelReason, ErrorCategory, SortOrder
from .exceptions import (
    NetworkError,
    PageNotFoundError,
    PagerError,
    ProviderError,
    RateLimitError,
    RequestCancelledError,
    RequestTimeoutError,
    ValidationError,
)

__all__ = [
    "SortOrder",
    "ErrorCategory",
    "CancelReason",
    "PagerError",
    "ProviderError",
    "RateLimitError",
    "PageNotFoundError",
    "NetworkError",
    "RequestTimeoutError",
    "RequestCancelledError",
    "ValidationError",
]
