from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.exc import SQLAlchemyError

from dm_service.api.deps import NotifierDep, UoWFactoryDep, get_verifier
from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import AppError
from dm_service.application.policies.permissions import assert_participant
from dm_service.config import settings
from dm_service.infrastructure.ws.connection import WsConnection
from dm_service.infrastructure.ws.protocol import WsInbound, WsOutbound
from dm_service.services.conversation_session import UoWFactory
from dm_service.services.presence_service import presence

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


async def _authenticate(token: str) -> Principal | None:
    try:
        verifier = get_verifier()
        return await verifier.verify(token)
    except Exception:
        logger.debug("WS auth failed", exc_info=True)
        return None


@router.websocket("/ws/dm")
async def ws_dm(
    websocket: WebSocket,
    notifier: NotifierDep,
    uow_factory: UoWFactoryDep,
    token: str = Query(...),
) -> None:
    principal = await _authenticate(token)
    if principal is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    await websocket.accept()
    conn = WsConnection(websocket, principal.user_id, notifier)
    pkey = principal.principal_key
    logger.debug("WS connected: %s", pkey)
    await presence.connected(principal.user_id, uow_factory)

    heartbeat_task = asyncio.create_task(
        _heartbeat(conn), name=f"ws-heartbeat-{pkey}",
    )
    try:
        await _read_loop(websocket, conn, uow_factory)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", pkey)
    finally:
        heartbeat_task.cancel()
        conn.close()
        await presence.disconnected(principal.user_id, uow_factory)
        logger.debug("WS disconnected: %s", pkey)


async def _heartbeat(conn: WsConnection) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    while not conn.closed:
        await asyncio.sleep(interval)
        await conn.send(WsOutbound(type="pong"))


async def _read_loop(ws: WebSocket, conn: WsConnection, uow_factory: UoWFactory) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except ValueError:
            await conn.send(WsOutbound.error("invalid_payload"))
            continue

        if msg.type == "ping":
            await conn.send(WsOutbound(type="pong"))

        elif msg.type == "subscribe":
            conversation_id = _conversation_id(msg.data)
            if conversation_id is None:
                await conn.send(WsOutbound.error("invalid_data"))
            elif await _can_subscribe(conn.user_id, conversation_id, conn, uow_factory):
                conn.subscribe(conversation_id)

        elif msg.type == "unsubscribe":
            conversation_id = _conversation_id(msg.data)
            if conversation_id is not None:
                conn.unsubscribe(conversation_id)

        elif msg.type == "subscribe_inbox":
            conn.subscribe_inbox()

        else:
            await conn.send(WsOutbound.error("unknown_type", type=msg.type))


def _conversation_id(data: dict) -> UUID | None:
    try:
        return UUID(str(data["conversation_id"]))
    except (KeyError, ValueError):
        return None


async def _can_subscribe(
    user_id: UUID,
    conversation_id: UUID,
    conn: WsConnection,
    uow_factory: UoWFactory,
) -> bool:
    """Only participants may listen to a conversation's inserts."""
    try:
        async with uow_factory() as uow:
            conversation = await uow.conversations.get_by_id(conversation_id)
        assert_participant(user_id, conversation)
    except AppError as exc:
        await conn.send(WsOutbound.error("subscribe_denied", detail=exc.detail))
        return False
    except (SQLAlchemyError, OSError):
        logger.exception("Subscribe check failed for conversation=%s", conversation_id)
        await conn.send(WsOutbound.error("subscribe_failed"))
        return False
    return True
