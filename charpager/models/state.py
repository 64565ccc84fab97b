"""Published session state."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import ErrorCategory, SortOrder
from .character import Character


class SessionState(BaseModel):
    """Immutable snapshot of what the presentation layer should show.

    A new snapshot is produced for every publication; ``total_count`` and
    ``total_pages`` stay ``None`` until the first successful fetch.
    """

    ui_page: int = Field(1, ge=1)
    sort_order: SortOrder = SortOrder.NEWEST_FIRST
    total_count: int | None = None
    total_pages: int | None = None
    items: tuple[Character, ...] = ()
    is_loading: bool = False
    error: ErrorCategory | None = None
    error_message: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def evolve(self, **changes: object) -> SessionState:
        """Return a copy with ``changes`` applied."""
        return self.model_copy(update=changes)
