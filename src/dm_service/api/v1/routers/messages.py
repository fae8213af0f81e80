from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from dm_service.api.deps import CurrentPrincipal, PublisherDep, StrategyDep, UoWDep
from dm_service.api.v1.schemas.message import MessageResponse, SendMessageRequest, TypingRequest
from dm_service.config import settings
from dm_service.services import message_service, typing_service

router = APIRouter(prefix="/api/v1/dm/conversations", tags=["messages"])


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    strategy: StrategyDep,
    limit: int = Query(settings.MESSAGE_PAGE_SIZE, ge=1, le=settings.MAX_MESSAGE_PAGE_SIZE),
    offset: int = Query(0, ge=0),
) -> list[MessageResponse]:
    messages = await message_service.fetch_messages(
        conversation_id, principal.user_id, limit, offset, uow, strategy,
    )
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    conversation_id: UUID,
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MessageResponse:
    msg = await message_service.send_message(
        conversation_id, principal.user_id, body.content, uow,
    )
    return MessageResponse.model_validate(msg, from_attributes=True)


@router.post("/{conversation_id}/typing", status_code=status.HTTP_204_NO_CONTENT)
async def send_typing(
    conversation_id: UUID,
    body: TypingRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    publisher: PublisherDep,
) -> Response:
    await typing_service.send_typing(
        conversation_id,
        principal.user_id,
        body.is_typing,
        uow,
        publisher,
        settings.REDIS_PUBSUB_CHANNEL,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
