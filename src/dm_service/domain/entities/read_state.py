from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ReadState:
    user_id: UUID
    conversation_id: UUID
    last_read_at: datetime
