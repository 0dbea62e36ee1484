"""
ConversationSync - message store and sync engine for one open conversation.

State machine:

    idle → loading → synced ⇄ refreshing
                  ↘ idle (load failed)          any → closed

While synced, a background task re-fetches the authoritative message list on a
fixed cadence and merges it into the local view (see reconciliation.py). A
change feed, when available, only makes the next cycle start early: the
cadence alone keeps the view correct if every notification is lost.

The local list is touched by exactly three things, always under `_lock` and
without awaiting in between: the initial load, a reconciliation merge and the
optimistic send bookkeeping (insert, confirm, mark failed).
"""

import asyncio
import logging
from datetime import timedelta
from enum import Enum
from typing import Optional

from marketchat.application.commands.chat.send_message import (
    SendMessageCommand,
    SendMessageHandler,
    normalize_content,
)
from marketchat.application.queries.chat.get_chat_history import (
    GetChatHistoryHandler,
    GetChatHistoryQuery,
)
from marketchat.application.services.reconciliation import insert_confirmed, reconcile
from marketchat.config.settings import Config
from marketchat.domain.entities.message import Message
from marketchat.domain.exceptions import (
    AccessDeniedError,
    EntityNotFoundError,
    IdentityResolutionError,
    LoadError,
    SendFailedError,
)
from marketchat.domain.ports.change_feed import ChangeFeed, Subscription
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.attachment import Attachment
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle
from marketchat.domain.value_objects.message_id import MessageId

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SYNCED = "synced"
    REFRESHING = "refreshing"
    CLOSED = "closed"


_OPEN_STATES = (SyncState.SYNCED, SyncState.REFRESHING)


class ConversationSync:
    def __init__(
        self,
        conversation_id: ConversationId,
        viewer_id: AccountId,
        history_handler: GetChatHistoryHandler,
        send_handler: SendMessageHandler,
        change_feed: Optional[ChangeFeed] = None,
        poll_interval: Optional[float] = None,
        match_window: Optional[float] = None,
        refresh_limit: Optional[int] = None,
    ):
        self.conversation_id = conversation_id
        self.viewer_id = viewer_id
        self._history = history_handler
        self._sender = send_handler
        self._change_feed = change_feed
        self._poll_interval = poll_interval or Config.SYNC_POLL_INTERVAL_SECONDS
        self._match_window = timedelta(
            seconds=match_window or Config.RECONCILE_MATCH_WINDOW_SECONDS
        )
        self._refresh_limit = refresh_limit or Config.SYNC_REFRESH_LIMIT

        self.state = SyncState.IDLE
        self._messages: list[Message] = []
        self._own_handle: Optional[Handle] = None
        self._peer_handle: Optional[Handle] = None
        # Attachments of failed sends, kept so a retry can upload them again
        self._retry_attachments: dict[MessageId, Attachment] = {}

        self._lock = asyncio.Lock()
        self._send_lock = asyncio.Lock()
        self._wake = asyncio.Event()
        self._fetch_in_flight = False
        self._task: Optional[asyncio.Task] = None
        self._subscription: Optional[Subscription] = None

    @property
    def messages(self) -> list[Message]:
        """Snapshot of the ordered view, unconfirmed entries last."""
        return list(self._messages)

    @property
    def own_handle(self) -> Optional[Handle]:
        return self._own_handle

    @property
    def peer_handle(self) -> Optional[Handle]:
        return self._peer_handle

    @property
    def is_open(self) -> bool:
        return self.state in _OPEN_STATES

    # ==================== LIFECYCLE ====================

    async def open(self) -> list[Message]:
        if self.state == SyncState.CLOSED:
            raise LoadError("Conversation view was closed")
        if self.state != SyncState.IDLE:
            return self.messages

        self.state = SyncState.LOADING
        try:
            result = await self._history.execute(
                GetChatHistoryQuery(
                    conversation_id=self.conversation_id,
                    viewer_id=self.viewer_id,
                )
            )
        except (IdentityResolutionError, EntityNotFoundError, AccessDeniedError):
            self._reset()
            raise
        except Exception as e:
            self._reset()
            logger.warning(f"[Sync] Loading {self.conversation_id} failed: {e}")
            raise LoadError(f"Could not load conversation: {e}") from e

        if self.state == SyncState.CLOSED:
            # Closed while loading: nothing may leak into a view that is gone
            return []

        async with self._lock:
            self._own_handle = result.own_handle
            self._peer_handle = result.peer_handle
            self._messages = list(result.messages)
        self.state = SyncState.SYNCED

        await self._subscribe()
        self._task = asyncio.create_task(self._run())
        logger.info(
            f"[Sync] Opened {self.conversation_id} with {len(self._messages)} message(s)"
        )
        return self.messages

    async def close(self) -> None:
        if self.state == SyncState.CLOSED:
            return
        self.state = SyncState.CLOSED

        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            try:
                await subscription.close()
            except Exception as e:
                logger.warning(f"[Sync] Unsubscribing {self.conversation_id} failed: {e}")

        async with self._lock:
            self._messages = []
            self._retry_attachments.clear()
        logger.info(f"[Sync] Closed {self.conversation_id}")

    def notify(self) -> None:
        """Start the next reconciliation cycle now instead of at the next tick."""
        self._wake.set()

    def _reset(self) -> None:
        self._messages = []
        if self.state != SyncState.CLOSED:
            self.state = SyncState.IDLE

    async def _subscribe(self) -> None:
        if self._change_feed is None:
            return
        try:
            self._subscription = await self._change_feed.subscribe(
                self.conversation_id, self.notify
            )
        except Exception as e:
            logger.warning(
                f"[Sync] Change feed unavailable for {self.conversation_id}, "
                f"polling only: {e}"
            )

    # ==================== RECONCILIATION ====================

    async def _run(self) -> None:
        while self.state != SyncState.CLOSED:
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                pass
            self._wake.clear()
            await self.refresh()

    async def refresh(self) -> bool:
        """
        Run one reconciliation cycle.

        Returns False when the cycle was skipped (another fetch is still in
        flight, or the view is not open) or the fetch failed; the local view
        is left untouched in both cases.
        """
        if self.state != SyncState.SYNCED or self._fetch_in_flight:
            return False

        self._fetch_in_flight = True
        self.state = SyncState.REFRESHING
        try:
            fetched = await self._fetch(self._refresh_limit)
            if self._has_gap(fetched):
                fetched = await self._fetch(None)
            if self.state == SyncState.CLOSED:
                return False
            async with self._lock:
                self._messages = reconcile(
                    self._messages, fetched, self._match_window
                )
            return True
        except Exception as e:
            logger.warning(f"[Sync] Refresh of {self.conversation_id} failed: {e}")
            return False
        finally:
            self._fetch_in_flight = False
            if self.state == SyncState.REFRESHING:
                self.state = SyncState.SYNCED

    async def _fetch(self, limit: Optional[int]) -> list[Message]:
        result = await self._history.execute(
            GetChatHistoryQuery(
                conversation_id=self.conversation_id,
                viewer_id=self.viewer_id,
                limit=limit,
                own_handle=self._own_handle,
                peer_handle=self._peer_handle,
            )
        )
        return result.messages

    def _has_gap(self, fetched: list[Message]) -> bool:
        """True when a full page came back that does not reach the local view."""
        if len(fetched) < self._refresh_limit:
            return False
        known = [m for m in self._messages if m.is_confirmed]
        if not known:
            return True
        return fetched[0].sort_key > known[-1].sort_key

    # ==================== SENDING ====================

    async def send(
        self, content: Optional[str], attachment: Optional[Attachment] = None
    ) -> Message:
        """
        Show the message right away as pending, then deliver it.

        Invalid input raises before the view changes. A failed delivery
        leaves the entry in the view marked failed and raises SendFailedError.
        """
        if not self.is_open:
            raise EntityNotFoundError(f"Conversation {self.conversation_id} is not open")
        text = normalize_content(content, attachment)

        entry = Message.pending(
            conversation_id=self.conversation_id,
            sender=self._own_handle,
            content=text,
            has_attachment=attachment is not None,
        )
        async with self._lock:
            self._messages.append(entry)
        return await self._deliver(entry, attachment)

    async def retry(self, message_id: MessageId) -> Message:
        entry = next(
            (m for m in self._messages if m.id == message_id and m.is_failed), None
        )
        if entry is None:
            raise EntityNotFoundError(f"No failed message {message_id} to retry")

        async with self._lock:
            entry.mark_pending()
        return await self._deliver(entry, self._retry_attachments.pop(entry.id, None))

    async def _deliver(
        self, entry: Message, attachment: Optional[Attachment]
    ) -> Message:
        # One in-flight send per composer keeps the last-message summary in order
        async with self._send_lock:
            try:
                if self.state == SyncState.CLOSED:
                    raise SendFailedError("Conversation was closed before sending")
                confirmed = await self._sender.execute(
                    SendMessageCommand(
                        conversation_id=self.conversation_id,
                        sender_id=self.viewer_id,
                        content=entry.content,
                        attachment=attachment,
                    )
                )
            except Exception as e:
                await self._fail(entry, attachment, e)
                if isinstance(e, SendFailedError):
                    raise
                raise SendFailedError(f"Message could not be sent: {e}") from e

        if self.state != SyncState.CLOSED:
            async with self._lock:
                self._messages = insert_confirmed(
                    [m for m in self._messages if m is not entry], confirmed
                )
        return confirmed

    async def _fail(
        self, entry: Message, attachment: Optional[Attachment], error: Exception
    ) -> None:
        logger.warning(f"[Sync] Send to {self.conversation_id} failed: {error}")
        if self.state == SyncState.CLOSED:
            return
        async with self._lock:
            # Reconciliation may already have matched it to a delivered copy
            if any(m is entry for m in self._messages):
                entry.mark_failed(str(error))
                if attachment is not None:
                    self._retry_attachments[entry.id] = attachment
