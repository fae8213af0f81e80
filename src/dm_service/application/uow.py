from __future__ import annotations

from typing import Protocol

from dm_service.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from dm_service.application.repositories.message import MessageReader, MessageWriter
from dm_service.application.repositories.outbox import OutboxWriter
from dm_service.application.repositories.procedures import MessagingProcedures
from dm_service.application.repositories.profile import ProfileReader
from dm_service.application.repositories.read_state import (
    ReadStateReader,
    ReadStateWriter,
)
from dm_service.application.repositories.user_status import (
    UserStatusReader,
    UserStatusWriter,
)


class UnitOfWork(Protocol):
    conversations: ConversationReader
    conversations_w: ConversationWriter
    messages: MessageReader
    messages_w: MessageWriter
    read_state: ReadStateReader
    read_state_w: ReadStateWriter
    profiles: ProfileReader
    statuses: UserStatusReader
    statuses_w: UserStatusWriter
    procedures: MessagingProcedures
    outbox: OutboxWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
