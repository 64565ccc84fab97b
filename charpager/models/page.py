"""Remote page models.

``CharacterPageResponse`` mirrors the raw ``/character`` payload; the
client converts it into a ``RemotePageResult`` before anything else sees it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .character import Character


class PageInfo(BaseModel):
    """Pagination metadata block returned with every page."""

    count: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)
    next: str | None = None
    prev: str | None = None

    model_config = ConfigDict(frozen=True)


class CharacterPageResponse(BaseModel):
    """Raw response of ``GET /character/?page=<n>``."""

    info: PageInfo
    results: list[Character] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="ignore")


class RemotePageResult(BaseModel):
    """One remote page, in the remote's ascending-by-id order."""

    page: int = Field(..., ge=1)
    items: tuple[Character, ...] = ()
    total_count: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    info: PageInfo | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_response(cls, page: int, response: CharacterPageResponse) -> RemotePageResult:
        """Build a result from a validated raw response."""
        return cls(
            page=page,
            items=tuple(response.results),
            total_count=response.info.count,
            total_pages=response.info.pages,
            info=response.info,
        )
