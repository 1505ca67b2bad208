"""Shared mutable state for one running router.

Everything that outlives a single request lives on a RouterContext built
once at startup and handed to the Dispatcher: the per-session sliding
window of turns and the last location any request resolved.
Both are volatile; nothing survives a restart.
"""

from __future__ import annotations

import collections
import threading
from typing import Iterable

from nodemesh.log import logger
from nodemesh.models import ConversationTurn

DEFAULT_SESSION_ID = "default"


def resolve_session_id(session_id: str | None) -> str:
    """Empty or missing ids share the ``default`` session."""
    if not session_id or not session_id.strip():
        return DEFAULT_SESSION_ID
    return session_id.strip()


class SessionMemory:
    """Per-session ring buffer of the last ``2 * max_turns`` turns.

    Sessions are created lazily on first append. ``max_sessions`` of 0
    means unbounded; otherwise the least recently used session is dropped
    when a new one would exceed the cap.
    """

    def __init__(self, max_turns: int = 6, max_sessions: int = 0) -> None:
        self._max_turns = max(1, max_turns)
        self._max_sessions = max(0, max_sessions)
        self._sessions: collections.OrderedDict[str, collections.deque] = collections.OrderedDict()
        self._lock = threading.Lock()

    @property
    def max_turns(self) -> int:
        return self._max_turns

    @property
    def window(self) -> int:
        return 2 * self._max_turns

    def _session(self, session_id: str) -> collections.deque:
        """Get or create a session buffer. Caller holds lock."""
        buf = self._sessions.get(session_id)
        if buf is None:
            if self._max_sessions and len(self._sessions) >= self._max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug("Session cap %d reached, evicted %s", self._max_sessions, evicted)
            buf = collections.deque(maxlen=self.window)
            self._sessions[session_id] = buf
        else:
            self._sessions.move_to_end(session_id)
        return buf

    def get(self, session_id: str | None) -> list[ConversationTurn]:
        """Snapshot of the session's turns, oldest first."""
        sid = resolve_session_id(session_id)
        with self._lock:
            buf = self._sessions.get(sid)
            return list(buf) if buf is not None else []

    def append(self, session_id: str | None, *turns: ConversationTurn) -> None:
        """Append turns atomically; the deque evicts the oldest past the window."""
        sid = resolve_session_id(session_id)
        with self._lock:
            self._session(sid).extend(turns)

    def seed(self, session_id: str | None, turns: Iterable[ConversationTurn]) -> bool:
        """Fill an empty session from client-held history. Returns True if seeded."""
        sid = resolve_session_id(session_id)
        turns = list(turns)
        if not turns:
            return False
        with self._lock:
            existing = self._sessions.get(sid)
            if existing:
                return False
            self._session(sid).extend(turns)
        logger.debug("Seeded session %s with %d client turns", sid, min(len(turns), self.window))
        return True

    def clear(self, session_id: str | None) -> bool:
        sid = resolve_session_id(session_id)
        with self._lock:
            return self._sessions.pop(sid, None) is not None

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class RouterContext:
    """Process-lifetime state owned by one Dispatcher.

    ``last_known_location`` is deliberately global across sessions and
    last-writer-wins: it is a convenience default for weather requests
    that name no place.
    """

    def __init__(self, memory: SessionMemory | None = None) -> None:
        self.memory = memory if memory is not None else SessionMemory()
        self._location = ""
        self._location_lock = threading.Lock()

    @classmethod
    def from_config(cls) -> "RouterContext":
        from nodemesh.config.loader import get_memory_config
        cfg = get_memory_config()
        try:
            max_turns = int(cfg.get("max_turns", 6))
            max_sessions = int(cfg.get("max_sessions", 0))
        except (TypeError, ValueError):
            logger.warning("Invalid memory config, using defaults", exc_info=True)
            max_turns = 6
            max_sessions = 0
        return cls(SessionMemory(max_turns=max_turns, max_sessions=max_sessions))

    @property
    def last_known_location(self) -> str:
        with self._location_lock:
            return self._location

    def remember_location(self, location: str) -> None:
        """Overwrite the shared location. Empty values are ignored."""
        location = (location or "").strip()
        if not location:
            return
        with self._location_lock:
            self._location = location
