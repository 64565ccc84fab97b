"""Core enumerations shared by the planner, classifier and coordinator.

Design Decisions:
    - String enums: values serialize cleanly and match the query/CLI tokens
    - One enum per concern: sort direction, user-facing error category and
      the reason a cancel token fired are kept separate
"""

from enum import Enum


class SortOrder(str, Enum):
    """Presentation order of the item window.

    The upstream API only serves ascending-by-id pages; both orders are
    assembled client-side.
    """

    NEWEST_FIRST = "created_desc"
    OLDEST_FIRST = "created_asc"

    @classmethod
    def from_string(cls, value: str) -> "SortOrder":
        """Parse a sort order from its value, name, or a short alias."""
        aliases = {
            "newest": cls.NEWEST_FIRST,
            "desc": cls.NEWEST_FIRST,
            "oldest": cls.OLDEST_FIRST,
            "asc": cls.OLDEST_FIRST,
        }
        key = value.strip()
        if key.lower() in aliases:
            return aliases[key.lower()]
        for order in cls:
            if key == order.value or key.upper() == order.name:
                return order
        raise ValueError(f"Invalid sort order: {value!r}")


class ErrorCategory(str, Enum):
    """User-facing failure categories.

    Every category except CANCELLED is shown to the user.
    """

    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    NETWORK = "network"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @property
    def user_visible(self) -> bool:
        return self is not ErrorCategory.CANCELLED


class CancelReason(str, Enum):
    """Why a cancel token fired."""

    SUPERSEDED = "superseded"
    TIMEOUT = "timeout"
    SHUTDOWN = "shutdown"
