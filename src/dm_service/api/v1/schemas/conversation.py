from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class CreateConversationRequest(BaseModel):
    other_user_id: UUID


class CreateConversationResponse(BaseModel):
    conversation_id: UUID


class ProfileLiteResponse(BaseModel):
    user_id: UUID
    name: str
    profile_picture: str | None

    model_config = {"from_attributes": True}


class ConversationPreviewResponse(BaseModel):
    conversation_id: UUID
    other_user: ProfileLiteResponse
    last_message: str | None
    last_message_at: datetime | None
    unread_count: int
    is_online: bool = False
    last_seen: datetime | None = None

    model_config = {"from_attributes": True}
