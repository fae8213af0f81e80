"""Per-socket realtime state: the notifier subscriptions one client holds."""
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import WebSocket

from dm_service.domain.entities.message import Message
from dm_service.infrastructure.realtime.notifier import ChangeNotifier, Unsubscribe
from dm_service.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)


class WsConnection:
    """Bridges notifier callbacks to one WebSocket.

    Once ``close()`` has run every callback becomes a no-op, so events that
    were already queued are never written to a dead socket.
    """

    def __init__(self, ws: WebSocket, user_id: UUID, notifier: ChangeNotifier) -> None:
        self.ws = ws
        self.user_id = user_id
        self.closed = False
        self._notifier = notifier
        self._conversations: dict[UUID, list[Unsubscribe]] = {}
        self._inbox: Unsubscribe | None = None

    async def send(self, payload: WsOutbound) -> None:
        if self.closed:
            return
        try:
            await self.ws.send_text(payload.model_dump_json())
        except Exception:
            logger.debug("WS send failed for user %s, closing", self.user_id, exc_info=True)
            self.close()

    def subscribe(self, conversation_id: UUID) -> None:
        if self.closed or conversation_id in self._conversations:
            return

        async def on_insert(message: Message) -> None:
            await self.send(WsOutbound.message_created(message))

        async def on_typing(user_id: UUID, is_typing: bool) -> None:
            if user_id != self.user_id:
                await self.send(WsOutbound.typing(conversation_id, user_id, is_typing))

        self._conversations[conversation_id] = [
            self._notifier.subscribe_to_conversation(conversation_id, on_insert),
            self._notifier.subscribe_to_typing(conversation_id, on_typing),
        ]

    def unsubscribe(self, conversation_id: UUID) -> None:
        for unsubscribe in self._conversations.pop(conversation_id, []):
            unsubscribe()

    def subscribe_inbox(self) -> None:
        if self.closed or self._inbox is not None:
            return

        async def on_any_new_message() -> None:
            await self.send(WsOutbound.inbox_changed())

        self._inbox = self._notifier.subscribe_to_inbox(self.user_id, on_any_new_message)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        for conversation_id in list(self._conversations):
            self.unsubscribe(conversation_id)
        if self._inbox is not None:
            self._inbox()
            self._inbox = None
