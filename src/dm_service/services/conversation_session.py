"""Consumer-side state for one open conversation.

This is what a chat screen keeps while it is mounted: the merged timeline,
the compose draft and the error flags it renders. It talks to the store
through the same strategy and services as the HTTP API.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import AbstractAsyncContextManager
from typing import Callable

from dm_service.application.ports.strategy import MessagingStrategy
from dm_service.application.uow import UnitOfWork
from dm_service.domain.entities.message import Message
from dm_service.domain.timeline import merge_messages
from dm_service.infrastructure.realtime.notifier import ChangeNotifier, Unsubscribe
from dm_service.services import conversation_service, message_service

logger = logging.getLogger(__name__)

UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]


class ConversationSession:
    def __init__(
        self,
        conversation_id: uuid.UUID,
        viewer_id: uuid.UUID,
        *,
        uow_factory: UoWFactory,
        strategy: MessagingStrategy,
        notifier: ChangeNotifier,
        page_size: int = 40,
    ) -> None:
        self.conversation_id = conversation_id
        self.viewer_id = viewer_id
        self.messages: list[Message] = []
        self.draft = ""
        self.send_error: str | None = None
        self.load_failed = False
        self.closed = False
        self._uow_factory = uow_factory
        self._strategy = strategy
        self._notifier = notifier
        self._page_size = page_size
        self._unsubscribe: Unsubscribe | None = None

    async def open(self) -> None:
        """Subscribe, then load the first page.

        Subscribing first means an insert racing the fetch is still seen; the
        merge drops the duplicate if both deliver it.
        """
        self._unsubscribe = self._notifier.subscribe_to_conversation(
            self.conversation_id, self._on_insert,
        )
        await self.load()

    async def load(self, offset: int = 0) -> bool:
        """Fetch a page. On failure sets ``load_failed`` so the UI can offer a retry."""
        try:
            async with self._uow_factory() as uow:
                page = await self._strategy.fetch_messages(
                    self.conversation_id, self.viewer_id, self._page_size, offset, uow,
                )
        except Exception:
            logger.exception("Loading conversation %s failed", self.conversation_id)
            if not self.closed:
                self.load_failed = True
            return False

        if self.closed:
            return False
        self.load_failed = False
        self.messages = merge_messages(self.messages, page)
        return True

    async def load_more(self) -> bool:
        return await self.load(offset=len(self.messages))

    async def send(self, content: str | None = None) -> Message | None:
        """Send ``content`` (or the current draft).

        The draft is cleared only once the store has accepted the message, so a
        failed send leaves the typed text in place.
        """
        if content is not None:
            self.draft = content
        try:
            async with self._uow_factory() as uow:
                message = await message_service.send_message(
                    self.conversation_id, self.viewer_id, self.draft, uow,
                )
        except Exception as exc:
            logger.warning("Send failed in conversation %s: %s", self.conversation_id, exc)
            if not self.closed:
                self.send_error = getattr(exc, "detail", "") or "Message could not be sent"
            return None

        if self.closed:
            return message
        self.draft = ""
        self.send_error = None
        self.messages = merge_messages(self.messages, [message])
        return message

    async def mark_read(self) -> None:
        async with self._uow_factory() as uow:
            await conversation_service.mark_conversation_read(
                self.viewer_id, self.conversation_id, uow, self._strategy,
            )

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_insert(self, message: Message) -> None:
        if self.closed:
            return
        self.messages = merge_messages(self.messages, [message])
