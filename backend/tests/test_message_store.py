import pytest

from lineserver.core.errors import CapacityExceeded
from lineserver.core.message import MessageStore, new_message_id
from lineserver.models.message import Message

ALICE = "a" * 32
BOB = "b" * 32


def make_message(clock, sender=ALICE, to=None, data="cipher"):
    return Message(sender=sender, recipient=to, encrypted_data=data, timestamp=clock.now, created_at=clock.now)


def test_append_assigns_unique_ids_in_order(clock):
    store = MessageStore(max_messages=10, retention_ms=1000, clock=clock)
    ids = [store.append(make_message(clock, data=str(i))) for i in range(5)]

    assert len(set(ids)) == 5
    assert [m.id for m in store.list_for_journalist()] == ids
    assert [m.encrypted_data for m in store.list_for_journalist()] == ["0", "1", "2", "3", "4"]


def test_ids_unique_within_same_millisecond():
    assert len({new_message_id(42) for _ in range(1000)}) == 1000


def test_append_rejected_when_full(clock):
    store = MessageStore(max_messages=2, retention_ms=1000, clock=clock)
    store.append(make_message(clock))
    store.append(make_message(clock))

    with pytest.raises(CapacityExceeded):
        store.append(make_message(clock))
    assert len(store) == 2


def test_list_for_user_matches_sender_or_recipient(clock):
    store = MessageStore(max_messages=10, retention_ms=1000, clock=clock)
    store.append(make_message(clock, sender=ALICE, data="from alice"))
    store.append(make_message(clock, sender="journalist", to=ALICE, data="to alice"))
    store.append(make_message(clock, sender=BOB, data="from bob"))

    assert [m.encrypted_data for m in store.list_for_user(ALICE)] == ["from alice", "to alice"]
    assert [m.encrypted_data for m in store.list_for_user(BOB)] == ["from bob"]


def test_remove_from_only_drops_sender_messages(clock):
    store = MessageStore(max_messages=10, retention_ms=1000, clock=clock)
    store.append(make_message(clock, sender=ALICE))
    store.append(make_message(clock, sender="journalist", to=ALICE))

    assert store.remove_from(ALICE) == 1
    assert [m.sender for m in store.list_for_journalist()] == ["journalist"]


def test_expired_messages_hidden_then_swept(clock):
    store = MessageStore(max_messages=10, retention_ms=1000, clock=clock)
    store.append(make_message(clock, data="old"))
    clock.advance(500)
    store.append(make_message(clock, data="new"))
    clock.advance(501)

    assert [m.encrypted_data for m in store.list_for_journalist()] == ["new"]
    assert len(store) == 2

    assert store.sweep() == 1
    assert len(store) == 1


def test_stored_messages_are_immutable(clock):
    store = MessageStore(max_messages=10, retention_ms=1000, clock=clock)
    store.append(make_message(clock))
    message = store.list_for_journalist()[0]

    with pytest.raises(Exception):
        message.encrypted_data = "tampered"
