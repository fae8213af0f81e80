from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: UUID

    @property
    def principal_key(self) -> str:
        """Stable key used in WS task names and logs."""
        return f"user:{self.user_id}"
