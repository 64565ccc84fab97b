"""HTTP client helper."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import aiohttp

from ..core.exceptions import (
    NetworkError,
    PageNotFoundError,
    ProviderError,
    RateLimitError,
    RequestTimeoutError,
)


def _retry_after(headers: Any, default: int = 60) -> int:
    value = headers.get("Retry-After") if headers is not None else None
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


class HTTPClient:
    """Async HTTP client wrapper.

    Failures are raised as library exceptions so callers never see raw
    aiohttp errors. No request is ever retried here.
    """

    def __init__(self, base_url: str | None = None, timeout: float = 15.0) -> None:
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET request returning the decoded JSON body.

        Raises:
            RateLimitError: on HTTP 429
            PageNotFoundError: on HTTP 404
            ProviderError: on any other non-2xx status, or a body that is not JSON
            RequestTimeoutError: if the client timeout elapses
            NetworkError: on transport failures
        """
        if self.base_url and not url.startswith("http"):
            url = f"{self.base_url}{url}"

        try:
            async with self.session.get(url, params=params, headers=headers) as response:
                if response.status == 429:
                    raise RateLimitError(
                        "Too many requests", retry_after=_retry_after(response.headers)
                    )
                if response.status == 404:
                    raise PageNotFoundError(f"Request failed ({response.status})")
                if not 200 <= response.status < 300:
                    raise ProviderError(
                        f"Request failed ({response.status})", status_code=response.status
                    )
                try:
                    return await response.json()
                except json.JSONDecodeError as e:
                    raise ProviderError(
                        f"Malformed JSON body: {e.msg}", status_code=response.status
                    ) from e
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(
                f"Request timed out after {self.timeout.total:g} seconds",
                timeout=self.timeout.total,
            ) from e
        except aiohttp.ContentTypeError as e:
            raise ProviderError(f"Unexpected content type: {e.message}", status_code=e.status) from e
        except aiohttp.ClientResponseError as e:
            raise ProviderError(f"Request failed ({e.status})", status_code=e.status) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Network error: {e}") from e

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()
