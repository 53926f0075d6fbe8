"""
Session Registry for the MCP gateway.

Maps session ids to live Session objects. It is the only mutable state shared
between concurrent exchanges; every insert, lookup and removal happens under
one lock so no caller ever sees a half-built or half-removed entry.
"""

import logging
from collections.abc import Callable
from threading import Lock
from typing import Any

from mineru_mcp.framework.errors import ConflictError
from mineru_mcp.server.session import Session

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str], Session]


class SessionRegistry:
    """Lock-guarded map of session id to live Session."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """
        Args:
            session_factory: Builds the Session for a new id (no I/O)
        """
        self._lock = Lock()
        self._factory = session_factory
        self._sessions: dict[str, Session] = {}

    def lookup(self, session_id: str | None) -> Session | None:
        """Return the live Session for ``session_id``, or None."""
        if session_id is None:
            return None
        with self._lock:
            return self._sessions.get(session_id)

    def create(self, session_id: str) -> Session:
        """
        Build and register a Session for ``session_id``.

        The Session removes itself from the registry when it closes.

        Raises:
            ConflictError: If ``session_id`` is already registered
        """
        with self._lock:
            if session_id in self._sessions:
                msg = f"Session {session_id} already exists"
                raise ConflictError(msg, conflict_type="session_id")

            session = self._factory(session_id)
            session.add_close_callback(self.remove)
            self._sessions[session_id] = session

        logger.info("Session initialized: %s", session_id)
        return session

    def remove(self, session_id: str) -> None:
        """Drop ``session_id``; unknown ids are ignored."""
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.debug("Session %s removed from registry", session_id)

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def get_stats(self) -> dict[str, Any]:
        """Get statistics about live sessions."""
        with self._lock:
            sessions = list(self._sessions.values())
        oldest = min((s.created_at for s in sessions), default=None)
        return {
            "sessions": len(sessions),
            "in_flight": sum(s.in_flight for s in sessions),
            "oldest_session": oldest.isoformat() if oldest else None,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions


__all__ = ["SessionFactory", "SessionRegistry"]
