from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

DEFAULT_DISPLAY_NAME = "User"


@dataclass(frozen=True, slots=True)
class ProfileLite:
    """Read-only projection of a user profile, owned by the profile system."""

    user_id: UUID
    name: str
    profile_picture: str | None = None

    @classmethod
    def placeholder(cls, user_id: UUID) -> ProfileLite:
        return cls(user_id=user_id, name=DEFAULT_DISPLAY_NAME, profile_picture=None)
