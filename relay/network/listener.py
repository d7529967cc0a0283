"""
Host-side accept loop.

Binds the listening socket synchronously (so a busy port fails start-up
immediately) and accepts on a dedicated thread. Each accepted connection is
handed to on_accept as a fresh Session.

An accept failure that is not caused by shutdown ends accepting for good.
Nothing restarts the listener; the host keeps serving the peers it already
has, and recovering means restarting the process.
"""

import logging
import socket
import threading
from typing import Callable

from shared.constants import ACCEPT_POLL_INTERVAL, DEFAULT_BIND_ADDRESS, LISTEN_BACKLOG
from relay.network.errors import BindError
from relay.network.session import Session


logger = logging.getLogger(__name__)


class Listener:
    """Listening socket plus its accept thread."""

    def __init__(
        self,
        port: int,
        on_accept: Callable[[Session], None],
        bind_address: str = DEFAULT_BIND_ADDRESS,
        poll_interval: float = ACCEPT_POLL_INTERVAL,
    ):
        self._requested_port = port
        self._bind_address = bind_address
        self._on_accept = on_accept
        self._poll_interval = poll_interval

        self._sock: socket.socket | None = None
        self._bound_port: int | None = None
        self._thread: threading.Thread | None = None
        self._stopping = threading.Event()
        self._accepting = False

    @property
    def port(self) -> int:
        """The bound port (differs from the requested one when that was 0)."""
        if self._bound_port is None:
            return self._requested_port
        return self._bound_port

    @property
    def is_accepting(self) -> bool:
        return self._accepting

    def start(self) -> None:
        """
        Bind, listen and start the accept thread.

        Raises:
            BindError: if the port cannot be bound
        """
        if self._sock is not None:
            return

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self._bind_address, self._requested_port))
            sock.listen(LISTEN_BACKLOG)
        except OSError as e:
            sock.close()
            raise BindError(self._bind_address, self._requested_port, str(e)) from e

        # Short accept timeout so the thread notices shutdown on every platform
        sock.settimeout(self._poll_interval)
        self._sock = sock
        self._bound_port = sock.getsockname()[1]
        self._stopping.clear()
        self._accepting = True

        self._thread = threading.Thread(
            target=self._accept_loop,
            name="relay-accept",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"[Host] Listening on {self._bind_address}:{self.port}")

    def close(self, timeout: float | None = None) -> bool:
        """
        Stop accepting and close the listening socket. Idempotent.

        Returns:
            True if the accept thread has exited
        """
        self._stopping.set()
        sock, self._sock = self._sock, None
        if sock is not None:
            sock.close()
            logger.info("[Host] Stopped accepting connections")

        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("[Host] Accept thread did not exit in time; abandoning it")
            return False
        self._thread = None
        return True

    def _accept_loop(self) -> None:
        sock = self._sock
        try:
            while not self._stopping.is_set():
                try:
                    conn, address = sock.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self._stopping.is_set():
                        break
                    logger.error(
                        f"[Host] Listener exception on port {self.port}: {e}; "
                        "no longer accepting connections"
                    )
                    break

                if self._stopping.is_set():
                    # Lost the race with shutdown; do not register into a closing host
                    conn.close()
                    break

                conn.settimeout(None)
                conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                logger.info(f"[Host] Client connected: {address[0]}:{address[1]}")

                try:
                    self._on_accept(Session(conn, address))
                except Exception as e:
                    logger.exception(f"[Host] Could not set up session for {address}: {e}")
                    conn.close()
        finally:
            self._accepting = False
