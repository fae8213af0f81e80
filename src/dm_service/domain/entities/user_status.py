from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class UserStatus:
    """Presence row: online while the user holds at least one live socket."""

    user_id: UUID
    is_online: bool
    last_seen: datetime | None = None
    status_message: str | None = None
