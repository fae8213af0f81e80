from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    user_one_id: UUID
    user_two_id: UUID
    last_message: str | None
    last_message_at: datetime | None
    created_at: datetime
    updated_at: datetime
    hidden_by_user_one: bool = False
    hidden_by_user_two: bool = False

    def has_participant(self, user_id: UUID) -> bool:
        return user_id in (self.user_one_id, self.user_two_id)

    def other_participant(self, user_id: UUID) -> UUID:
        """Return the counterpart of ``user_id`` in this two-party conversation."""
        return self.user_two_id if self.user_one_id == user_id else self.user_one_id

    def is_hidden_for(self, user_id: UUID) -> bool:
        if user_id == self.user_one_id:
            return self.hidden_by_user_one
        if user_id == self.user_two_id:
            return self.hidden_by_user_two
        return False
