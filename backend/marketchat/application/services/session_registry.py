"""
ChatSessionRegistry - keeps one ChatSession per signed-in session.

HTTP requests are stateless, but an open conversation (its loop task and
pending sends) is not, so sessions live here between requests. A session that
sees no request for `idle_timeout` seconds is closed by the sweeper, which
stops its refresh loop; everything left is torn down on shutdown.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from marketchat.application.services.chat_session import ChatSession
from marketchat.config.settings import Config
from marketchat.domain.entities.account import Account
from marketchat.domain.value_objects.account_id import AccountId

logger = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "default"

SessionFactory = Callable[[Account], ChatSession]
SessionKey = tuple[AccountId, str]


class ChatSessionRegistry:
    def __init__(
        self,
        factory: SessionFactory,
        idle_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self._idle_timeout = idle_timeout or Config.CHAT_SESSION_IDLE_SECONDS
        self._clock = clock
        self._sessions: dict[SessionKey, ChatSession] = {}
        self._last_seen: dict[SessionKey, float] = {}
        self._lock = asyncio.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(
        self, account: Account, session_key: Optional[str] = None
    ) -> ChatSession:
        key = (account.id, session_key or DEFAULT_SESSION_KEY)
        async with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = self._factory(account)
                self._sessions[key] = session
                logger.debug(f"[Sessions] New chat session for {account.id}")
            else:
                # Token claims can change between requests (e.g. email verified)
                session.account = account
            self._last_seen[key] = self._clock()
            return session

    async def close_session(
        self, account_id: AccountId, session_key: Optional[str] = None
    ) -> None:
        key = (account_id, session_key or DEFAULT_SESSION_KEY)
        async with self._lock:
            session = self._sessions.pop(key, None)
            self._last_seen.pop(key, None)
        if session is not None:
            await session.close()

    async def sweep(self) -> int:
        """Close every session idle for longer than the timeout."""
        cutoff = self._clock() - self._idle_timeout
        async with self._lock:
            idle = [key for key, seen in self._last_seen.items() if seen < cutoff]
            sessions = [self._sessions.pop(key) for key in idle]
            for key in idle:
                del self._last_seen[key]
        await self._close(sessions)
        if sessions:
            logger.info(f"[Sessions] Closed {len(sessions)} idle chat session(s)")
        return len(sessions)

    def start_sweeper(self, interval: Optional[float] = None) -> None:
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(
                self._sweep_forever(interval or Config.CHAT_SESSION_SWEEP_SECONDS)
            )

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.warning(f"[Sessions] Idle sweep failed: {e}")

    async def close_all(self) -> None:
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass

        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._last_seen.clear()
        await self._close(sessions)
        if sessions:
            logger.info(f"[Sessions] Closed {len(sessions)} chat session(s)")

    async def _close(self, sessions: list[ChatSession]) -> None:
        for session in sessions:
            try:
                await session.close()
            except Exception as e:
                logger.warning(f"[Sessions] Closing session failed: {e}")
