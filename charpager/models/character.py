"""Character data model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CharacterLocation(BaseModel):
    """Named reference to an origin or last-known location."""

    name: str = ""
    url: str = ""

    model_config = ConfigDict(frozen=True)


class Character(BaseModel):
    """A single character record as served by the remote API.

    Only ``id`` and ``created`` matter to the windowing logic; the rest is
    carried through for presentation.
    """

    id: int = Field(..., ge=1)
    name: str = ""
    status: str = "unknown"
    species: str = ""
    type: str = ""
    gender: str = ""
    origin: CharacterLocation = Field(default_factory=CharacterLocation)
    location: CharacterLocation = Field(default_factory=CharacterLocation)
    image: str = ""
    episode: list[str] = Field(default_factory=list)
    url: str = ""
    created: datetime

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)
