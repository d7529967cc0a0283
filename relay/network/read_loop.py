"""
Blocking read loop for one session, on its own thread.

Host-side loops read the JOIN handshake first; the peer's loop goes straight
to steady state. Whatever ends the loop (end of stream, a socket fault, or
shutdown closing the socket) the loop cleans up after itself: it calls
on_exit exactly once and then closes the session.
"""

import logging
import threading
from typing import Callable

from shared.constants import UNKNOWN_TEAM
from shared.protocol import MalformedHandshake, parse_join
from relay.network.errors import ConnectionFault
from relay.network.session import Session


logger = logging.getLogger(__name__)


class ReadLoop:
    """
    Background reader for a single session.

    Args:
        session: The connection to read
        on_line: Called on the loop thread with (session, line) for each line
        on_exit: Called on the loop thread once, when the loop ends
        on_handshake: Called with the session after the handshake attempt
        expect_handshake: Read a JOIN line before steady state
        role_label: Prefix for log lines ("Host" / "Peer")
    """

    def __init__(
        self,
        session: Session,
        on_line: Callable[[Session, str], None],
        on_exit: Callable[[Session], None] | None = None,
        on_handshake: Callable[[Session], None] | None = None,
        expect_handshake: bool = True,
        role_label: str = "Host",
    ):
        self.session = session
        self._on_line = on_line
        self._on_exit = on_exit
        self._on_handshake = on_handshake
        self._expect_handshake = expect_handshake
        self._role_label = role_label
        self._thread: threading.Thread | None = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run,
            name=f"relay-read-{self.session.address}",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> bool:
        """
        Wait for the loop to finish.

        Returns:
            True if the thread has exited
        """
        if self._thread is None:
            return True
        if self._thread is threading.current_thread():
            return False
        self._thread.join(timeout)
        return not self._thread.is_alive()

    # =========================================================================
    # Loop body
    # =========================================================================

    def _run(self) -> None:
        session = self.session
        try:
            if self._expect_handshake:
                session.begin_handshake()
                if not self._read_handshake():
                    return
                session.activate()
                if self._on_handshake:
                    self._on_handshake(session)

            while True:
                line = session.read_line()
                if line is None:
                    logger.info(f"[{self._role_label}] {session.label} closed the connection")
                    break
                logger.debug(f"[{self._role_label}] Received from {session.label}: {line}")
                self._on_line(session, line)

        except ConnectionFault as e:
            if session.is_connected:
                logger.error(f"[{self._role_label}] Connection error: {e}")
            else:
                logger.debug(f"[{self._role_label}] Read ended after close: {e}")
        except Exception as e:
            logger.exception(f"[{self._role_label}] Read loop for {session.label} failed: {e}")
        finally:
            if self._on_exit:
                try:
                    self._on_exit(session)
                except Exception as e:
                    logger.exception(f"[{self._role_label}] Cleanup for {session.label} failed: {e}")
            session.close()
            session.release_reader()
            logger.info(f"[{self._role_label}] Session {session.label} disconnected")

    def _read_handshake(self) -> bool:
        """
        Read the JOIN line and set the session's team.

        Returns:
            False if the stream ended before any line arrived
        """
        session = self.session
        line = session.read_line()
        if line is None:
            logger.info(f"[{self._role_label}] {session.address} disconnected before joining")
            return False

        try:
            session.team = parse_join(line)
            logger.info(f"[{self._role_label}] {session.address} joined as team {session.team}")
        except MalformedHandshake as e:
            session.team = UNKNOWN_TEAM
            logger.warning(
                f"[{self._role_label}] {session.address} sent no proper join message ({e}); "
                f"using team {UNKNOWN_TEAM}"
            )
        return True
