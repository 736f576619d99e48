"""
Registry of open scheduling sessions.

There is a single user, but FastAPI may serve requests from several worker
threads, so access to a session goes through the registry lock. Sessions that
are abandoned without confirming or cancelling expire after ``ttl_seconds``.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from TaskPilot.scheduling.session import SchedulingSession

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = float(os.getenv("TASKPILOT_SESSION_TTL", "3600"))


class SessionNotFound(KeyError):
    pass


class SessionRegistry:
    def __init__(
        self,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._sessions: dict[str, SchedulingSession] = {}
        self._opened_at: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, session: SchedulingSession) -> SchedulingSession:
        with self._lock:
            self.prune()
            self._sessions[session.session_id] = session
            self._opened_at[session.session_id] = self._clock()
        logger.info(f"Opened scheduling session {session.session_id}")
        return session

    def prune(self) -> int:
        """Drop sessions older than the TTL. Returns how many were dropped."""
        with self._lock:
            cutoff = self._clock() - self.ttl_seconds
            expired = [sid for sid, opened in self._opened_at.items() if opened <= cutoff]
            for session_id in expired:
                self._discard(session_id)
        if expired:
            logger.info(f"Expired {len(expired)} abandoned scheduling session(s)")
        return len(expired)

    def _discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._opened_at.pop(session_id, None)

    @contextmanager
    def locked(self, session_id: str) -> Iterator[SchedulingSession]:
        """Hold the registry lock while working on one session.

        Finished sessions are dropped from the registry on exit.
        """
        with self._lock:
            self.prune()
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            try:
                yield session
            finally:
                if session.is_finished:
                    self._discard(session_id)
                    logger.info(
                        f"Closed scheduling session {session_id} ({session.phase.value})"
                    )

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._opened_at.clear()


_registry = SessionRegistry()


def get_session_registry() -> SessionRegistry:
    return _registry
