"""Data models.

All models are Pydantic v2 and frozen; state changes produce new snapshots
instead of mutating shared objects.
"""

from .character import Character, CharacterLocation
from .page import CharacterPageResponse, PageInfo, RemotePageResult
from .state import SessionState

__all__ = [
    "Character",
    "CharacterLocation",
    "CharacterPageResponse",
    "PageInfo",
    "RemotePageResult",
    "SessionState",
]
