from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from dm_service.api.deps import CurrentPrincipal, StrategyDep, UoWDep
from dm_service.api.v1.schemas.conversation import (
    ConversationPreviewResponse,
    CreateConversationRequest,
    CreateConversationResponse,
)
from dm_service.config import settings
from dm_service.services import conversation_service

router = APIRouter(prefix="/api/v1/dm/conversations", tags=["conversations"])


@router.post("", response_model=CreateConversationResponse)
async def get_or_create_conversation(
    body: CreateConversationRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    strategy: StrategyDep,
) -> CreateConversationResponse:
    conversation_id = await conversation_service.get_or_create_conversation(
        principal.user_id, body.other_user_id, uow, strategy,
    )
    return CreateConversationResponse(conversation_id=conversation_id)


@router.get("", response_model=list[ConversationPreviewResponse])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
    strategy: StrategyDep,
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
) -> list[ConversationPreviewResponse]:
    previews = await conversation_service.list_conversations(
        principal.user_id, limit, offset, uow, strategy,
    )
    return [ConversationPreviewResponse.model_validate(p, from_attributes=True) for p in previews]


@router.post("/{conversation_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    strategy: StrategyDep,
) -> Response:
    await conversation_service.mark_conversation_read(
        principal.user_id, conversation_id, uow, strategy,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def hide_conversation(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> Response:
    await conversation_service.hide_conversation(principal.user_id, conversation_id, uow)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
