"""
Seven GUIs sessions.

Each browser session owns one snapshot. Events for a session are applied
one at a time under its lock; the snapshot is replaced, never mutated.
Sessions idle longer than the timeout are dropped by cleanup(). The map is
capped at max_sessions; past the cap the least recently used idle session
makes room for the new one.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Any

from engine.kernel.reducer import empty_state

logger = logging.getLogger(__name__)


class Session:
    __slots__ = ("id", "snapshot", "lock", "last_access")

    def __init__(self, session_id: str, snapshot: dict[str, Any], now: float) -> None:
        self.id = session_id
        self.snapshot = snapshot
        self.lock = asyncio.Lock()
        self.last_access = now


class SessionStore:
    """In-process map of session id -> Session."""

    def __init__(
        self,
        timeout_seconds: float,
        clock: Callable[[], float] = time.time,
        max_sessions: int = 10_000,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get_or_create(self, session_id: str | None) -> Session:
        """Return the session for an id, or a fresh one when the id is unknown or was dropped."""
        now = self._clock()
        session = self._sessions.get(session_id) if session_id else None
        if session is None:
            self._evict()
            session = Session(str(uuid.uuid4()), empty_state(), now)
            self._sessions[session.id] = session
            logger.info("sessions: created %s (%d active)", session.id, len(self._sessions))
        session.last_access = now
        return session

    def _evict(self) -> None:
        """Drop least recently used unlocked sessions until there is room for one more."""
        while len(self._sessions) >= self.max_sessions:
            idle = [s for s in self._sessions.values() if not s.lock.locked()]
            if not idle:
                return
            oldest = min(idle, key=lambda s: s.last_access)
            del self._sessions[oldest.id]
            logger.info("sessions: evicted %s (cap %d)", oldest.id, self.max_sessions)

    @asynccontextmanager
    async def locked(self, session_id: str | None):
        """Hold a session's lock for the duration of one event."""
        session = self.get_or_create(session_id)
        async with session.lock:
            yield session

    def cleanup(self) -> int:
        """Drop idle sessions. Returns how many were dropped."""
        now = self._clock()
        expired = [
            sid
            for sid, session in self._sessions.items()
            if now - session.last_access > self.timeout_seconds and not session.lock.locked()
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("sessions: dropped %d idle sessions", len(expired))
        return len(expired)


async def cleanup_task(sessions: SessionStore, interval: float = 60.0) -> None:
    """
    Background task to drop idle sessions.

    Runs every `interval` seconds.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            sessions.cleanup()
        except Exception as e:
            logger.error("sessions: cleanup failed: %s", e)
