"""
Reconciliation - merge a freshly fetched authoritative message list into the
local view of a conversation.

Rules:
- Confirmed messages are never dropped, whatever the fetch returned, so a
  stale or partial fetch cannot make the view go backwards.
- A pending or failed local entry is retired once the fetch contains a new
  confirmed message from the same sender with the same content, the same
  kind of attachment and a timestamp within the match window.
- Confirmed messages are ordered by (created_at, id); unmatched local
  entries stay at the tail in the order they were composed.
"""

from datetime import timedelta
from typing import Iterable, Optional

from marketchat.domain.entities.message import Message
from marketchat.domain.value_objects.message_id import MessageId


def reconcile(
    local: list[Message], fetched: Iterable[Message], match_window: timedelta
) -> list[Message]:
    confirmed: dict[MessageId, Message] = {m.id: m for m in local if m.is_confirmed}
    fetched = [m for m in fetched if m.is_confirmed]

    # Only messages this view has never seen can stand in for an optimistic entry
    fresh = sorted(
        (m for m in fetched if m.id not in confirmed), key=lambda m: m.sort_key
    )
    for message in fetched:
        confirmed[message.id] = message

    claimed: set[MessageId] = set()
    unresolved = []
    for entry in local:
        if entry.is_confirmed:
            continue
        match = _find_match(entry, fresh, claimed, match_window)
        if match is None:
            unresolved.append(entry)
        else:
            claimed.add(match.id)

    merged = sorted(confirmed.values(), key=lambda m: m.sort_key)
    return merged + unresolved


def insert_confirmed(messages: list[Message], confirmed: Message) -> list[Message]:
    """Place a confirmed message by sort key, ahead of any unconfirmed tail."""
    if any(m.id == confirmed.id for m in messages):
        return messages
    settled = [m for m in messages if m.is_confirmed]
    tail = [m for m in messages if not m.is_confirmed]
    settled.append(confirmed)
    settled.sort(key=lambda m: m.sort_key)
    return settled + tail


def _find_match(
    entry: Message,
    candidates: list[Message],
    claimed: set[MessageId],
    match_window: timedelta,
) -> Optional[Message]:
    for candidate in candidates:
        if candidate.id in claimed:
            continue
        if candidate.sender != entry.sender or candidate.content != entry.content:
            continue
        if entry.has_attachment != (candidate.image_url is not None):
            continue
        if entry.image_url is not None and entry.image_url != candidate.image_url:
            continue
        if abs(candidate.created_at - entry.created_at) > match_window:
            continue
        return candidate
    return None
