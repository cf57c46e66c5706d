"""Shared test fixtures."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest

from kitab_sync.application.dto.principal import Principal
from kitab_sync.application.exceptions import NetworkFailure
from kitab_sync.domain.entities.conversation import Conversation
from kitab_sync.domain.entities.message import Message
from kitab_sync.domain.entities.wishlist import WishlistItem

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_conversation(
    conversation_id: int,
    *,
    other_user_id: int = 100,
    name: str = "amine",
    last_message: str | None = "hello",
) -> Conversation:
    return Conversation(
        id=conversation_id,
        other_user_id=other_user_id,
        other_user_name=name,
        last_message=last_message,
        last_message_at=T0,
        listing_id=None,
        listing_title=None,
    )


def make_message(
    message_id: int,
    conversation_id: int = 1,
    *,
    sender_id: int = 100,
    body: str = "hello",
) -> Message:
    return Message(
        id=message_id,
        conversation_id=conversation_id,
        sender_id=sender_id,
        body=body,
        created_at=T0 + timedelta(minutes=message_id),
    )


async def settle(rounds: int = 20) -> None:
    """Let every ready task run until it blocks again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Clock whose sleeps only finish when the test calls ``tick()``."""

    def __init__(self) -> None:
        self.sleeps: list[float] = []
        self._waiters: list[asyncio.Future[None]] = []

    def now(self) -> datetime:
        return T0

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        await fut

    async def tick(self) -> None:
        waiters, self._waiters = self._waiters, []
        for fut in waiters:
            if not fut.done():
                fut.set_result(None)
        await settle()


@dataclass
class FakeCredentials:
    token: str | None = None
    subject_id: int | None = 7

    def get_token(self) -> str | None:
        return self.token

    def has_token(self) -> bool:
        return self.token is not None

    def principal(self) -> Principal | None:
        if self.token is None:
            return None
        return Principal(subject_id=self.subject_id)


@dataclass
class FakeConversationReader:
    conversations: list[Conversation] = field(default_factory=list)
    calls: int = 0
    fail_with: Exception | None = None

    async def list_conversations(self) -> list[Conversation]:
        self.calls += 1
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc
        return list(self.conversations)


@dataclass
class FakeMessageRepository:
    by_conversation: dict[int, list[Message]] = field(default_factory=dict)
    gates: dict[int, asyncio.Event] = field(default_factory=dict)
    list_calls: list[int] = field(default_factory=list)
    created: list[tuple[int, str]] = field(default_factory=list)
    fail_create: Exception | None = None
    create_gate: asyncio.Event | None = None
    _next_id: int = 1000

    async def list_messages(self, conversation_id: int) -> list[Message]:
        self.list_calls.append(conversation_id)
        gate = self.gates.get(conversation_id)
        if gate is not None:
            await gate.wait()
        return list(self.by_conversation.get(conversation_id, []))

    async def create_message(self, conversation_id: int, body: str) -> Message:
        self.created.append((conversation_id, body))
        if self.create_gate is not None:
            await self.create_gate.wait()
        if self.fail_create is not None:
            exc, self.fail_create = self.fail_create, None
            raise exc
        self._next_id += 1
        msg = make_message(self._next_id, conversation_id, sender_id=7, body=body)
        self.by_conversation.setdefault(conversation_id, []).append(msg)
        return msg


@dataclass
class FakeWishlistRepository:
    items: list[WishlistItem] = field(default_factory=list)
    adds: list[int] = field(default_factory=list)
    removes: list[int] = field(default_factory=list)
    list_calls: int = 0
    fail_add: Exception | None = None
    fail_remove: Exception | None = None
    add_gate: asyncio.Event | None = None
    remove_gate: asyncio.Event | None = None

    @property
    def network_calls(self) -> int:
        return self.list_calls + len(self.adds) + len(self.removes)

    async def list_items(self) -> list[WishlistItem]:
        self.list_calls += 1
        return list(self.items)

    async def add(self, listing_id: int) -> None:
        self.adds.append(listing_id)
        if self.add_gate is not None:
            await self.add_gate.wait()
        if self.fail_add is not None:
            raise self.fail_add
        if all(i.listing_id != listing_id for i in self.items):
            self.items.append(WishlistItem(listing_id=listing_id))

    async def remove(self, listing_id: int) -> None:
        self.removes.append(listing_id)
        if self.remove_gate is not None:
            await self.remove_gate.wait()
        if self.fail_remove is not None:
            raise self.fail_remove
        self.items = [i for i in self.items if i.listing_id != listing_id]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def credentials() -> FakeCredentials:
    return FakeCredentials(token="token-abc")


@pytest.fixture
def anonymous() -> FakeCredentials:
    return FakeCredentials(token=None)


@pytest.fixture
def network_down() -> NetworkFailure:
    return NetworkFailure("connection refused")
