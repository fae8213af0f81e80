from __future__ import annotations

from typing import Protocol

from dm_service.application.dto.principal import Principal


class TokenVerifier(Protocol):
    """Turns an identity-provider bearer token into the calling user.

    Rejections surface as ``jwt.InvalidTokenError`` subclasses.
    """

    async def verify(self, token: str) -> Principal: ...
