from __future__ import annotations

import asyncio

import pytest

from kitab_sync.domain.value_objects.enums import SyncState
from kitab_sync.services.conversation_sync import CONVERSATIONS_KEY, MESSAGES_KEY, ConversationSync
from kitab_sync.workers.polling import PollingLoop
from tests.conftest import (
    FakeConversationReader,
    FakeMessageRepository,
    make_conversation,
    make_message,
    settle,
)


@pytest.fixture
def reader():
    return FakeConversationReader([make_conversation(1, name="Amine"), make_conversation(2, name="Sara")])


@pytest.fixture
def message_repo():
    return FakeMessageRepository(
        by_conversation={
            1: [make_message(11, 1), make_message(12, 1)],
            2: [make_message(21, 2)],
            3: [make_message(31, 3)],
        }
    )


def _make_sync(reader, message_repo, clock, **kwargs) -> tuple[ConversationSync, PollingLoop]:
    polling = PollingLoop(clock)
    return ConversationSync(reader, message_repo, polling, **kwargs), polling


@pytest.mark.asyncio
async def test_first_list_selects_first_conversation(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    assert sync.state == SyncState.UNINITIALIZED

    sync.start()
    await settle()

    assert sync.active_id == 1
    assert sync.selected_explicitly is False
    assert [m.id for m in sync.messages] == [11, 12]
    assert sync.state == SyncState.MESSAGES_LOADED
    await polling.aclose()


@pytest.mark.asyncio
async def test_deep_link_target_is_selected_and_cleared(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock, deep_link=2)

    sync.start()
    await settle()

    assert sync.active_id == 2
    assert sync.pending_target is None
    assert message_repo.list_calls == [2]
    await polling.aclose()


@pytest.mark.asyncio
async def test_missing_deep_link_stays_pending_until_listed(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock, deep_link=3)

    sync.start()
    await settle()
    assert sync.active_id == 1
    assert sync.pending_target == 3

    reader.conversations.append(make_conversation(3, name="Yacine"))
    await clock.tick()

    assert sync.active_id == 3
    assert sync.pending_target is None
    await polling.aclose()


@pytest.mark.asyncio
async def test_explicit_selection_survives_refresh(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    sync.start()
    await settle()

    sync.select(2)
    await settle()
    reader.conversations.insert(0, make_conversation(9, name="New"))
    await clock.tick()
    await clock.tick()

    assert sync.active_id == 2
    assert sync.selected_explicitly is True
    assert sync.conversations[0].id == 9
    await polling.aclose()


@pytest.mark.asyncio
async def test_switching_leaves_one_message_subscription(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    sync.start()
    await settle()
    first = sync.message_subscription

    sync.select(2)
    await settle()

    assert first is not None and first.cancelled
    assert polling.active_keys().count(MESSAGES_KEY) == 1
    assert polling.get(MESSAGES_KEY) is sync.message_subscription
    assert [m.conversation_id for m in sync.messages] == [2]

    await clock.tick()
    # Only conversation 2 keeps being polled.
    assert message_repo.list_calls == [1, 2, 2]
    await polling.aclose()


@pytest.mark.asyncio
async def test_list_refresh_does_not_restart_message_polling(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    sync.start()
    await settle()
    sub = sync.message_subscription

    reader.conversations[0] = make_conversation(1, name="Amine", last_message="updated")
    await sync.refresh_conversations()

    assert sync.message_subscription is sub
    assert sub is not None and sub.active
    await polling.aclose()


@pytest.mark.asyncio
async def test_selecting_active_conversation_is_noop(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    sync.start()
    await settle()
    sub = sync.message_subscription

    sync.select(1)

    assert sync.message_subscription is sub
    assert sync.selected_explicitly is True
    await polling.aclose()


@pytest.mark.asyncio
async def test_stale_messages_are_discarded(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    sync.start()
    await settle()

    message_repo.gates[1] = asyncio.Event()
    late = asyncio.create_task(sync.refresh_messages())
    await settle()
    sync.select(2)
    await settle()
    message_repo.gates[1].set()

    assert await late is False
    assert [m.id for m in sync.messages] == [21]
    await polling.aclose()


@pytest.mark.asyncio
async def test_identical_poll_keeps_message_reference(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    sync.start()
    await settle()
    held = sync.messages

    await clock.tick()

    assert sync.messages is held
    await polling.aclose()


@pytest.mark.asyncio
async def test_list_failure_keeps_polling(reader, message_repo, clock, network_down):
    reader.fail_with = network_down
    sync, polling = _make_sync(reader, message_repo, clock)

    sync.start()
    await settle()
    assert sync.state == SyncState.UNINITIALIZED
    assert sync.active_id is None

    await clock.tick()

    assert sync.active_id == 1
    await polling.aclose()


@pytest.mark.asyncio
async def test_empty_list_loads_without_selection(message_repo, clock):
    sync, polling = _make_sync(FakeConversationReader([]), message_repo, clock)

    sync.start()
    await settle()

    assert sync.state == SyncState.LIST_LOADED
    assert sync.conversation_cache.loaded is True
    assert sync.active_id is None
    assert sync.message_subscription is None
    await polling.aclose()


@pytest.mark.asyncio
async def test_set_deep_link_overrides_explicit_choice(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    sync.start()
    await settle()
    sync.select(1)

    sync.set_deep_link(2)

    assert sync.active_id == 2
    assert sync.pending_target is None
    await polling.aclose()


@pytest.mark.asyncio
async def test_stop_cancels_both_subscriptions(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    sync.start()
    await settle()

    sync.stop()
    await settle()

    assert polling.active_keys() == []
    assert sync.message_subscription is None


def test_filter_is_case_insensitive_and_keeps_order(reader, message_repo, clock):
    sync, _ = _make_sync(reader, message_repo, clock)
    sync.conversation_cache.merge(
        [
            make_conversation(5, name="Sara B"),
            make_conversation(3, name="amine"),
            make_conversation(4, name="SARAH"),
        ]
    )

    assert [c.id for c in sync.filter_conversations("sar")] == [5, 4]
    assert [c.id for c in sync.filter_conversations("")] == [5, 3, 4]
    assert sync.filter_conversations("zzz") == []


def test_is_outgoing_compares_against_counterpart(reader, message_repo, clock):
    sync, _ = _make_sync(reader, message_repo, clock)
    sync.conversation_cache.merge([make_conversation(1, other_user_id=100)])

    assert sync.is_outgoing(make_message(1, 1, sender_id=7)) is True
    assert sync.is_outgoing(make_message(2, 1, sender_id=100)) is False


@pytest.mark.asyncio
async def test_aclose_after_stop_collects_poll_tasks(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    sync.start()
    await settle()
    conversations = polling.get(CONVERSATIONS_KEY)
    messages = sync.message_subscription
    assert conversations is not None and messages is not None

    sync.stop()
    await polling.aclose()

    assert conversations._task.done()
    assert messages._task.done()


@pytest.mark.asyncio
async def test_switch_clears_shown_messages_while_next_fetch_is_pending(reader, message_repo, clock):
    sync, polling = _make_sync(reader, message_repo, clock)
    shown: list[tuple] = []
    sync.message_cache.add_listener(shown.append)
    sync.start()
    await settle()
    assert [m.id for m in shown[-1]] == [11, 12]

    message_repo.gates[2] = asyncio.Event()
    sync.select(2)
    await settle()

    assert shown[-1] == ()
    assert sync.messages == ()

    message_repo.gates[2].set()
    await settle()
    assert [m.id for m in shown[-1]] == [21]
    await polling.aclose()
