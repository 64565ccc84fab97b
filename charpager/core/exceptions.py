"""Custom exception hierarchy."""

from __future__ import annotations

from .enums import CancelReason


class PagerError(Exception):
    """Base exception for all library errors."""

    pass


class ProviderError(PagerError):
    """Non-2xx response from the remote API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(ProviderError):
    """Remote API reported too many requests."""

    def __init__(self, message: str, retry_after: int = 60) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class PageNotFoundError(ProviderError):
    """Requested page does not exist.

    Raised for an upstream 404 and for a local bounds check once the
    total page count is known. ``total_count``/``total_pages`` are set
    when the bound is known so callers can self-correct.
    """

    def __init__(
        self,
        message: str,
        page: int | None = None,
        total_count: int | None = None,
        total_pages: int | None = None,
    ) -> None:
        super().__init__(message, status_code=404)
        self.page = page
        self.total_count = total_count
        self.total_pages = total_pages


class NetworkError(PagerError):
    """Transport-level failure (DNS, refused connection, dropped socket)."""

    pass


class RequestTimeoutError(PagerError):
    """A request or batch did not finish within its deadline."""

    def __init__(self, message: str, timeout: float | None = None) -> None:
        super().__init__(message)
        self.timeout = timeout


class RequestCancelledError(PagerError):
    """Work was abandoned because a newer request or shutdown superseded it."""

    def __init__(self, message: str, reason: CancelReason = CancelReason.SUPERSEDED) -> None:
        super().__init__(message)
        self.reason = reason


class ValidationError(PagerError):
    """Upstream payload failed schema validation."""

    pass
