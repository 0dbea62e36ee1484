from datetime import datetime, timedelta, timezone
from uuid import uuid4

from marketchat.application.services.reconciliation import insert_confirmed, reconcile
from marketchat.domain.entities.message import Message, MessageStatus
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle
from marketchat.domain.value_objects.message_id import MessageId

CONV = ConversationId(str(uuid4()))
ME = Handle("a" * 32)
PEER = Handle("b" * 32)
T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
WINDOW = timedelta(seconds=30)


def confirmed(content, seconds, sender=ME, image_url=None, message_id=None):
    return Message(
        id=MessageId(message_id or str(uuid4())),
        conversation_id=CONV,
        sender=sender,
        content=content,
        created_at=T0 + timedelta(seconds=seconds),
        image_url=image_url,
        has_attachment=image_url is not None,
    )


def pending(content, seconds, has_attachment=False):
    message = Message.pending(CONV, ME, content, has_attachment=has_attachment)
    message.created_at = T0 + timedelta(seconds=seconds)
    return message


def test_confirmed_messages_survive_an_empty_fetch():
    local = [confirmed("hello", 1), confirmed("hi", 2, sender=PEER)]
    merged = reconcile(local, [], WINDOW)
    assert [m.content for m in merged] == ["hello", "hi"]


def test_new_server_messages_are_inserted_in_order():
    first = confirmed("one", 1)
    local = [first]
    fetched = [first, confirmed("three", 3, sender=PEER), confirmed("two", 2)]
    merged = reconcile(local, fetched, WINDOW)
    assert [m.content for m in merged] == ["one", "two", "three"]


def test_pending_entry_is_replaced_by_its_confirmed_copy():
    entry = pending("hello", 0)
    server_copy = confirmed("hello", 1)
    merged = reconcile([entry], [server_copy], WINDOW)
    assert merged == [server_copy]
    assert merged[0].status == MessageStatus.CONFIRMED


def test_unmatched_pending_entry_stays_at_the_tail():
    entry = pending("still sending", 5)
    fetched = [confirmed("older", 1, sender=PEER), confirmed("newer", 9, sender=PEER)]
    merged = reconcile([entry], fetched, WINDOW)
    assert [m.content for m in merged] == ["older", "newer", "still sending"]
    assert merged[-1] is entry


def test_failed_entry_stays_until_a_matching_message_arrives():
    entry = pending("retry me", 0)
    entry.mark_failed("network down")
    merged = reconcile([entry], [], WINDOW)
    assert merged == [entry]
    assert merged[0].is_failed


def test_already_known_message_does_not_retire_a_second_identical_send():
    first = confirmed("ok", 0)
    second = pending("ok", 2)
    merged = reconcile([first, second], [first], WINDOW)
    assert merged == [first, second]


def test_match_requires_same_sender():
    entry = pending("hello", 0)
    merged = reconcile([entry], [confirmed("hello", 1, sender=PEER)], WINDOW)
    assert len(merged) == 2
    assert merged[-1] is entry


def test_match_requires_timestamp_within_window():
    entry = pending("hello", 0)
    late = confirmed("hello", 120)
    merged = reconcile([entry], [late], WINDOW)
    assert merged == [late, entry]


def test_match_requires_same_attachment_presence():
    entry = pending(None, 0, has_attachment=True)
    text_only = confirmed(None, 1)
    with_image = confirmed(None, 1, image_url="https://blobs.test/x.png")

    assert reconcile([entry], [text_only], WINDOW)[-1] is entry
    assert reconcile([entry], [with_image], WINDOW) == [with_image]


def test_one_server_message_retires_only_one_pending_entry():
    a = pending("same", 0)
    b = pending("same", 1)
    server_copy = confirmed("same", 2)
    merged = reconcile([a, b], [server_copy], WINDOW)
    assert merged == [server_copy, b]


def test_equal_timestamps_are_ordered_by_id():
    low = confirmed("low", 1, message_id="00000000-0000-4000-8000-000000000001")
    high = confirmed("high", 1, message_id="00000000-0000-4000-8000-000000000002")
    merged = reconcile([], [high, low], WINDOW)
    assert [m.content for m in merged] == ["low", "high"]


def test_merge_is_monotonic_across_cycles():
    m1, m2, m3 = confirmed("1", 1), confirmed("2", 2), confirmed("3", 3)
    view = reconcile([], [m1, m2], WINDOW)
    # A stale fetch that lags behind must not shrink the view
    view = reconcile(view, [m1], WINDOW)
    view = reconcile(view, [m2, m3], WINDOW)
    assert [m.content for m in view] == ["1", "2", "3"]


def test_newer_server_copy_replaces_the_local_confirmed_one():
    old = confirmed("hello", 1, message_id="00000000-0000-4000-8000-0000000000aa")
    refreshed = confirmed("hello", 1, message_id="00000000-0000-4000-8000-0000000000aa")
    refreshed.image_url = "https://blobs.test/late.png"
    merged = reconcile([old], [refreshed], WINDOW)
    assert len(merged) == 1
    assert merged[0].image_url == "https://blobs.test/late.png"


def test_insert_confirmed_places_message_ahead_of_unconfirmed_tail():
    early = confirmed("early", 1)
    entry = pending("typing", 9)
    late = confirmed("late", 5)
    view = insert_confirmed([early, entry], late)
    assert view == [early, late, entry]


def test_insert_confirmed_is_idempotent():
    message = confirmed("hello", 1)
    view = insert_confirmed([message], message)
    assert view == [message]
