"""Remote page client for the character endpoint.

Fetches exactly one remote page per call. The client never retries; a
fresh request from the caller is the only retry path.
"""

from __future__ import annotations

import logging
from typing import Any

import pydantic

from ..core.exceptions import ValidationError
from ..models import CharacterPageResponse, RemotePageResult
from ..runtime.cancellation import CancelToken
from ..runtime.windowing import TIMEOUT_SECONDS
from ..utils.http import HTTPClient

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://rickandmortyapi.com/api"
CHARACTER_PATH = "/character/"


class CharacterClient:
    """Fetches character pages from the remote API.

    Args:
        base_url: API root, without trailing slash
        timeout: Per-request timeout in seconds, applied even when the
            caller's token carries no tighter deadline
        http: Optional pre-built HTTP client (shared session)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = TIMEOUT_SECONDS,
        http: HTTPClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = http or HTTPClient(base_url=self.base_url, timeout=timeout)
        self._owns_http = http is None

    async def fetch_page(self, page: int, token: CancelToken | None = None) -> RemotePageResult:
        """Fetch one remote page.

        Args:
            page: Remote page number (>= 1)
            token: Cancellation token; firing it aborts the request at once

        Returns:
            RemotePageResult with items in ascending-by-id order

        Raises:
            ValueError: If ``page`` is not a positive integer
            RateLimitError: If the API reports too many requests
            PageNotFoundError: If the page does not exist
            RequestCancelledError, RequestTimeoutError: If ``token`` fires
            ValidationError: If the payload does not match the schema
        """
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValueError(f"page must be a positive integer, got {page!r}")

        request = self._http.get(CHARACTER_PATH, params={"page": page})
        if token is not None:
            data = await token.guard(request)
        else:
            data = await request

        logger.debug("Fetched remote page", extra={"page": page})
        return self._parse(page, data)

    @staticmethod
    def _parse(page: int, data: Any) -> RemotePageResult:
        try:
            response = CharacterPageResponse.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Malformed character page {page}: {e}") from e
        return RemotePageResult.from_response(page, response)

    async def close(self) -> None:
        if self._owns_http:
            await self._http.close()

    async def __aenter__(self) -> CharacterClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
