"""Relay session table and its periodic sweeper."""

import asyncio
import time
from typing import Callable, Dict, List, Optional

from models import RelaySession
from utils import create_contextual_logger
from .metrics import relay_active_sessions


class RelaySessionStore:
    """Sessions accepted by a relay, keyed by session id."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self._sessions: Dict[str, RelaySession] = {}

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def put(self, session: RelaySession) -> None:
        self._sessions[session.session_id] = session
        relay_active_sessions.set(len(self._sessions))

    def get(self, session_id: str) -> Optional[RelaySession]:
        """Return a live session, dropping it on the way if it has expired."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if self.now_ms() > session.expires:
            self.remove(session_id)
            return None
        return session

    def remove(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        relay_active_sessions.set(len(self._sessions))

    def touch(self, session_id: str, expires: Optional[int] = None) -> None:
        """Record activity and move the expiry forward to a refreshed token's."""
        session = self._sessions.get(session_id)
        if session is None:
            return
        session.last_activity = self.now_ms()
        if expires is not None and expires > session.expires:
            session.expires = expires

    def sweep(self) -> List[str]:
        """Remove every expired session and return their ids."""
        now = self.now_ms()
        expired = [sid for sid, s in self._sessions.items() if now > s.expires]
        for sid in expired:
            del self._sessions[sid]
        relay_active_sessions.set(len(self._sessions))
        return expired


class SessionSweeper:
    """Background task that sweeps a RelaySessionStore on a fixed interval."""

    def __init__(self, store: RelaySessionStore, interval: float) -> None:
        self.store = store
        self.interval = interval
        self.logger = create_contextual_logger(__name__, service="session_sweeper")
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())
        self.logger.info("Session sweeper started", interval_seconds=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        self.logger.info("Session sweeper stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
            else:
                break

            expired = self.store.sweep()
            if expired:
                self.logger.info("Expired sessions swept", count=len(expired), remaining=len(self.store))
