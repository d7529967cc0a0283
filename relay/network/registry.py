"""
Registry of live host-side sessions.

The registry owns every session it holds. A session is removed exactly once,
by the ReadLoop that reads it, so two threads can never both tear it down.
"""

import logging
import threading
from typing import Any, Iterator

from relay.network.session import Session


logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Thread-safe mapping of session id to Session.

    The lock is held only for structural changes and snapshots, never across
    socket I/O; callers iterate over a snapshot.
    """

    def __init__(self):
        # session_id -> Session
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session: Session | str) -> bool:
        session_id = session if isinstance(session, str) else session.session_id
        with self._lock:
            return session_id in self._sessions

    def __iter__(self) -> Iterator[Session]:
        return iter(self.snapshot())

    # =========================================================================
    # Mutation
    # =========================================================================

    def add(self, session: Session) -> None:
        """
        Register a new session.

        Raises:
            ValueError: if the session is already registered
        """
        with self._lock:
            if session.session_id in self._sessions:
                raise ValueError(f"{session!r} is already registered")
            self._sessions[session.session_id] = session
            count = len(self._sessions)

        logger.info(f"Registered {session.address} ({count} connected)")

    def remove(self, session: Session) -> bool:
        """
        Drop a session.

        Returns:
            True if this call removed it, False if it was already gone
        """
        with self._lock:
            removed = self._sessions.pop(session.session_id, None) is not None
            count = len(self._sessions)

        if removed:
            logger.info(f"Removed {session.label} ({count} connected)")
        return removed

    def close_all(self) -> int:
        """
        Close every session and empty the registry.

        Used only by shutdown; the read loops then find their sessions already
        gone and skip their own removal.

        Returns:
            Number of sessions closed
        """
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        for session in sessions:
            session.close()
        return len(sessions)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            return self._sessions.get(session_id)

    def snapshot(self) -> list[Session]:
        """Current sessions, safe to iterate without the lock."""
        with self._lock:
            return list(self._sessions.values())

    def teams(self) -> list[str]:
        return [session.team for session in self.snapshot()]

    def get_stats(self) -> dict[str, Any]:
        sessions = self.snapshot()
        return {
            "connections": len(sessions),
            "teams": sorted(session.team for session in sessions),
            "addresses": [session.address for session in sessions],
        }
