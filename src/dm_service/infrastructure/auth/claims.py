from __future__ import annotations

from typing import Any
from uuid import UUID

import jwt

from dm_service.application.dto.principal import Principal


def principal_from_claims(payload: dict[str, Any]) -> Principal:
    """The identity provider puts the user's UUID in ``sub``."""
    try:
        return Principal(user_id=UUID(str(payload["sub"])))
    except (KeyError, ValueError) as exc:
        raise jwt.InvalidTokenError("Token subject is not a user id") from exc
