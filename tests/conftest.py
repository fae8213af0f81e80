"""Shared test fixtures."""
from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from dm_service.application.dto.conversation import ConversationPreview
from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import ProcedureUnavailableError
from dm_service.application.policies.permissions import assert_participant
from dm_service.application.repositories.outbox import OutboxRecord
from dm_service.domain.entities.conversation import Conversation
from dm_service.domain.entities.message import Message
from dm_service.domain.entities.profile import ProfileLite
from dm_service.domain.entities.read_state import ReadState
from dm_service.domain.entities.user_status import UserStatus
from dm_service.domain.value_objects.enums import OutboxStatus
from dm_service.domain.value_objects.ids import canonical_pair
from dm_service.services.strategies import QueryStrategy

ALICE = UUID("11111111-1111-4111-8111-111111111111")
BOB = UUID("22222222-2222-4222-8222-222222222222")
CAROL = UUID("33333333-3333-4333-8333-333333333333")


@dataclass
class FakeClock:
    """Deterministic clock. ``tick`` moves it forward one second."""

    current: datetime = field(
        default_factory=lambda: datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    )

    def now(self) -> datetime:
        return self.current

    def tick(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@dataclass
class InMemoryStore:
    """Tables shared by every FakeUoW created over it."""

    clock: FakeClock = field(default_factory=FakeClock)
    conversations: dict[UUID, Conversation] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)
    reads: dict[tuple[UUID, UUID], ReadState] = field(default_factory=dict)
    profiles: dict[UUID, ProfileLite] = field(default_factory=dict)
    statuses: dict[UUID, UserStatus] = field(default_factory=dict)
    outbox: list[dict[str, Any]] = field(default_factory=list)

    def find_pair(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        pair = {user_a, user_b}
        for c in self.conversations.values():
            if {c.user_one_id, c.user_two_id} == pair:
                return c
        return None

    def timeline(self, conversation_id: UUID) -> list[Message]:
        return sorted(
            (m for m in self.messages if m.conversation_id == conversation_id),
            key=lambda m: m.sort_key,
        )


def make_conversation(
    user_a: UUID = ALICE,
    user_b: UUID = BOB,
    *,
    conversation_id: UUID | None = None,
    last_message_at: datetime | None = None,
) -> Conversation:
    user_one_id, user_two_id = canonical_pair(user_a, user_b)
    now = datetime.now(timezone.utc)
    return Conversation(
        id=conversation_id or uuid.uuid4(),
        user_one_id=user_one_id,
        user_two_id=user_two_id,
        last_message=None,
        last_message_at=last_message_at,
        created_at=now,
        updated_at=now,
    )


def make_message(
    *,
    conversation_id: UUID | None = None,
    sender_id: UUID = ALICE,
    content: str = "hello",
    created_at: datetime | None = None,
    message_id: UUID | None = None,
) -> Message:
    return Message(
        id=message_id or uuid.uuid4(),
        conversation_id=conversation_id or uuid.uuid4(),
        sender_id=sender_id,
        content=content,
        created_at=created_at or datetime.now(timezone.utc),
    )


@dataclass
class FakeConversationReader:
    _store: InMemoryStore

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        return self._store.conversations.get(conversation_id)

    async def get_by_pair(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        return self._store.find_pair(user_a, user_b)

    async def list_for_user(
        self,
        user_id: UUID,
        *,
        limit: int = 20,
        offset: int = 0,
        include_hidden: bool = False,
    ) -> list[Conversation]:
        rows = [
            c for c in self._store.conversations.values()
            if c.has_participant(user_id) and (include_hidden or not c.is_hidden_for(user_id))
        ]
        rows.sort(key=lambda c: str(c.id))
        rows.sort(
            key=lambda c: c.last_message_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        rows.sort(key=lambda c: c.last_message_at is None)
        return rows[offset:offset + limit]


@dataclass
class FakeConversationWriter:
    _store: InMemoryStore

    async def create_or_get(self, user_one_id: UUID, user_two_id: UUID) -> Conversation:
        existing = self._store.find_pair(user_one_id, user_two_id)
        if existing is not None:
            return existing
        conversation = make_conversation(user_one_id, user_two_id)
        self._store.conversations[conversation.id] = conversation
        return conversation

    async def touch_last_message(self, conversation_id: UUID, content: str, ts: datetime) -> None:
        c = self._store.conversations[conversation_id]
        self._store.conversations[conversation_id] = dataclasses.replace(
            c,
            last_message=content,
            last_message_at=ts,
            updated_at=ts,
            hidden_by_user_one=False,
            hidden_by_user_two=False,
        )

    async def set_hidden(self, conversation_id: UUID, user_id: UUID, hidden: bool) -> None:
        c = self._store.conversations[conversation_id]
        column = "hidden_by_user_one" if c.user_one_id == user_id else "hidden_by_user_two"
        self._store.conversations[conversation_id] = dataclasses.replace(c, **{column: hidden})


@dataclass
class FakeMessageReader:
    _store: InMemoryStore

    async def list_messages(
        self, conversation_id: UUID, *, limit: int = 40, offset: int = 0
    ) -> list[Message]:
        newest_first = list(reversed(self._store.timeline(conversation_id)))
        return list(reversed(newest_first[offset:offset + limit]))

    async def count_from_others_since(
        self, conversation_id: UUID, user_id: UUID, since: datetime | None
    ) -> int:
        return sum(
            1 for m in self._store.timeline(conversation_id)
            if m.sender_id != user_id and (since is None or m.created_at > since)
        )


@dataclass
class FakeMessageWriter:
    _store: InMemoryStore

    async def create(self, conversation_id: UUID, sender_id: UUID, content: str) -> Message:
        msg = make_message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            created_at=self._store.clock.tick(),
        )
        self._store.messages.append(msg)
        return msg


@dataclass
class FakeReadStateReader:
    _store: InMemoryStore

    async def get(self, user_id: UUID, conversation_id: UUID) -> ReadState | None:
        return self._store.reads.get((user_id, conversation_id))


@dataclass
class FakeReadStateWriter:
    _store: InMemoryStore

    async def upsert_last_read(self, user_id: UUID, conversation_id: UUID) -> None:
        # stamped by the store clock, like messages
        self._store.reads[(user_id, conversation_id)] = ReadState(
            user_id=user_id,
            conversation_id=conversation_id,
            last_read_at=self._store.clock.now(),
        )


@dataclass
class FakeProfileReader:
    _store: InMemoryStore

    async def get_lite(self, user_id: UUID) -> ProfileLite | None:
        return self._store.profiles.get(user_id)


@dataclass
class FakeUserStatusReader:
    _store: InMemoryStore

    async def get(self, user_id: UUID) -> UserStatus | None:
        return self._store.statuses.get(user_id)


@dataclass
class FakeUserStatusWriter:
    _store: InMemoryStore

    async def set_online(self, user_id: UUID, online: bool) -> None:
        previous = self._store.statuses.get(user_id)
        self._store.statuses[user_id] = UserStatus(
            user_id=user_id,
            is_online=online,
            last_seen=self._store.clock.now(),
            status_message=previous.status_message if previous else None,
        )


@dataclass
class FakeProcedures:
    """Stored functions emulated in memory; only names in ``installed`` exist."""

    _store: InMemoryStore
    installed: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def _require(self, name: str) -> None:
        if name not in self.installed:
            raise ProcedureUnavailableError(name)
        self.calls.append(name)

    async def available(self) -> frozenset[str]:
        return frozenset(self.installed)

    async def get_or_create_conversation(self, user_one_id: UUID, user_two_id: UUID) -> UUID:
        self._require("get_or_create_conversation")
        return (await FakeConversationWriter(self._store).create_or_get(user_one_id, user_two_id)).id

    async def get_user_conversations(
        self, user_id: UUID, limit: int, offset: int
    ) -> list[ConversationPreview]:
        self._require("get_user_conversations")
        rows = await FakeConversationReader(self._store).list_for_user(
            user_id, limit=limit, offset=offset,
        )
        previews = []
        for c in rows:
            other_id = c.other_participant(user_id)
            status = self._store.statuses.get(other_id)
            read = self._store.reads.get((user_id, c.id))
            unread = await FakeMessageReader(self._store).count_from_others_since(
                c.id, user_id, read.last_read_at if read else None,
            )
            previews.append(
                ConversationPreview(
                    conversation_id=c.id,
                    other_user=self._store.profiles.get(other_id) or ProfileLite.placeholder(other_id),
                    last_message=c.last_message,
                    last_message_at=c.last_message_at,
                    unread_count=unread,
                    is_online=status.is_online if status else False,
                    last_seen=status.last_seen if status else None,
                )
            )
        return previews

    async def get_conversation_messages(
        self, conversation_id: UUID, user_id: UUID, limit: int, offset: int
    ) -> list[Message]:
        self._require("get_conversation_messages")
        assert_participant(user_id, self._store.conversations.get(conversation_id))
        newest_first = list(reversed(self._store.timeline(conversation_id)))
        return newest_first[offset:offset + limit]

    async def mark_conversation_as_read(self, user_id: UUID, conversation_id: UUID) -> None:
        self._require("mark_conversation_as_read")
        await FakeReadStateWriter(self._store).upsert_last_read(user_id, conversation_id)


@dataclass
class FakeOutboxWriter:
    _store: InMemoryStore

    async def add(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        aggregate_id: UUID | None = None,
    ) -> None:
        self._store.outbox.append(
            {
                "id": len(self._store.outbox) + 1,
                "event_type": event_type,
                "payload": payload,
                "aggregate_id": aggregate_id,
                "status": OutboxStatus.PENDING,
                "attempts": 0,
                "next_retry_at": None,
            }
        )

    async def fetch_due(self, batch_size: int, now: datetime) -> list[OutboxRecord]:
        due = [
            r for r in self._store.outbox
            if r["status"] in (OutboxStatus.PENDING, OutboxStatus.FAILED)
            and (r["next_retry_at"] is None or r["next_retry_at"] <= now)
        ][:batch_size]
        for r in due:
            r["status"] = OutboxStatus.PROCESSING
        return [
            OutboxRecord(
                id=r["id"], event_type=r["event_type"], payload=r["payload"], attempts=r["attempts"],
            )
            for r in due
        ]

    async def mark_sent(self, ids: list[int]) -> None:
        for r in self._store.outbox:
            if r["id"] in ids:
                r["status"] = OutboxStatus.SENT

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        for r in self._store.outbox:
            if r["id"] == record_id:
                r["status"] = OutboxStatus.FAILED
                r["attempts"] += 1
                r["next_retry_at"] = next_retry_at


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""

    store: InMemoryStore = field(default_factory=InMemoryStore)
    commits: int = 0
    rollbacks: int = 0

    def __post_init__(self) -> None:
        self.conversations = FakeConversationReader(self.store)
        self.conversations_w = FakeConversationWriter(self.store)
        self.messages = FakeMessageReader(self.store)
        self.messages_w = FakeMessageWriter(self.store)
        self.read_state = FakeReadStateReader(self.store)
        self.read_state_w = FakeReadStateWriter(self.store)
        self.profiles = FakeProfileReader(self.store)
        self.statuses = FakeUserStatusReader(self.store)
        self.statuses_w = FakeUserStatusWriter(self.store)
        self.procedures = FakeProcedures(self.store)
        self.outbox = FakeOutboxWriter(self.store)

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None:
            await self.rollback()


@dataclass
class FakePublisher:
    published: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    fail: bool = False

    async def publish(self, channel: str, payload: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.published.append((channel, payload))


@pytest.fixture
def store() -> InMemoryStore:
    s = InMemoryStore()
    s.profiles[ALICE] = ProfileLite(user_id=ALICE, name="Alice", profile_picture="a.png")
    s.profiles[BOB] = ProfileLite(user_id=BOB, name="Bob")
    return s


@pytest.fixture
def uow(store: InMemoryStore) -> FakeUoW:
    return FakeUoW(store)


@pytest.fixture
def strategy() -> QueryStrategy:
    return QueryStrategy()


@pytest.fixture
def alice() -> Principal:
    return Principal(user_id=ALICE)


@pytest.fixture
def bob() -> Principal:
    return Principal(user_id=BOB)
