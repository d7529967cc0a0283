"""
A single live TCP connection and its negotiated team.

Sessions are read by exactly one ReadLoop thread and written by whoever
sends; writes are serialized per session so concurrent broadcasts never
interleave bytes inside a frame.
"""

import logging
import socket
import threading
import uuid
from datetime import datetime

from shared.constants import ENCODING, UNKNOWN_TEAM
from shared.enums import SessionState
from shared.protocol import encode_line, strip_line
from relay.network.errors import ConnectionFault


logger = logging.getLogger(__name__)


class Session:
    """
    Record of one connection: socket handle, team tag and state.

    The session starts in CONNECTING. Callers move it forward with
    begin_handshake() / activate(); close() is idempotent and always ends in
    DISCONNECTED.
    """

    def __init__(
        self,
        sock: socket.socket,
        address: tuple | str | None = None,
        team: str = UNKNOWN_TEAM,
    ):
        self.session_id = uuid.uuid4().hex
        self.address = _format_address(address)
        self.team = team
        self.connected_at = datetime.utcnow()

        self._sock = sock
        self._state = SessionState.CONNECTING
        self._state_lock = threading.Lock()
        self._write_lock = threading.Lock()

        # Text reader owned by the ReadLoop thread; closed by that thread only
        self._reader = sock.makefile("r", encoding=ENCODING, errors="replace", newline="")

    def __repr__(self) -> str:
        return f"Session({self.label}, {self._state.name})"

    @property
    def label(self) -> str:
        """Short identity for log lines."""
        return f"{self.team}@{self.address}"

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state in (SessionState.AWAITING_HANDSHAKE, SessionState.ACTIVE)

    # =========================================================================
    # State transitions
    # =========================================================================

    def begin_handshake(self) -> None:
        self._transition(SessionState.CONNECTING, SessionState.AWAITING_HANDSHAKE)

    def activate(self) -> None:
        self._transition(SessionState.AWAITING_HANDSHAKE, SessionState.ACTIVE)

    def _transition(self, expected: SessionState, new_state: SessionState) -> None:
        with self._state_lock:
            # A close() racing with the handshake wins; never resurrect a session
            if self._state == expected:
                self._state = new_state

    # =========================================================================
    # I/O
    # =========================================================================

    def read_line(self) -> str | None:
        """
        Block until one line arrives.

        Returns:
            The line without its terminator, or None at end of stream

        Raises:
            ConnectionFault: if the socket fails while reading
        """
        try:
            raw = self._reader.readline()
        except (OSError, ValueError) as e:
            # ValueError: the reader was torn down under us during shutdown
            raise ConnectionFault(self.label, "read", str(e)) from e

        if not raw:
            return None
        return strip_line(raw)

    def write_line(self, payload: str) -> None:
        """
        Send one frame.

        Raises:
            ConnectionFault: if the session is closed or the write fails
        """
        data = encode_line(payload)
        with self._write_lock:
            if self._state == SessionState.DISCONNECTED:
                raise ConnectionFault(self.label, "write", "session is closed")
            try:
                self._sock.sendall(data)
            except OSError as e:
                raise ConnectionFault(self.label, "write", str(e)) from e

    def close(self) -> None:
        """
        Close the connection. Safe to call from any thread, any number of times.

        shutdown() comes first so a read blocked on another thread returns.
        """
        with self._state_lock:
            if self._state == SessionState.DISCONNECTED:
                return
            self._state = SessionState.DISCONNECTED

        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone
        self._sock.close()
        logger.debug(f"Closed session {self.label}")

    def release_reader(self) -> None:
        """Close the text reader. Only the reading thread may call this."""
        try:
            self._reader.close()
        except OSError as e:
            logger.debug(f"Error closing reader for {self.label}: {e}")


def _format_address(address: tuple | str | None) -> str:
    if address is None:
        return "unknown"
    if isinstance(address, tuple):
        return f"{address[0]}:{address[1]}"
    return str(address)
