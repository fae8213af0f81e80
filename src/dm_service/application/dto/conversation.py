from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from dm_service.domain.entities.profile import ProfileLite


@dataclass(frozen=True, slots=True)
class ConversationPreview:
    """One row of a user's inbox."""

    conversation_id: UUID
    other_user: ProfileLite
    last_message: str | None
    last_message_at: datetime | None
    unread_count: int
    is_online: bool = False
    last_seen: datetime | None = None
