"""Remote API clients."""

from .character_client import CHARACTER_PATH, DEFAULT_BASE_URL, CharacterClient

__all__ = ["CharacterClient", "CHARACTER_PATH", "DEFAULT_BASE_URL"]
