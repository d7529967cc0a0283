"""
Dual-mode relay core.

One NetworkManager runs either as the host (accepts peers and relays every
line a peer sends to all the other peers, prefixed with the sender's team)
or as a peer (one connection to the host). Socket reads happen on background
threads; subscribers are only ever called from process_messages(), which the
caller drives from its own single-threaded tick.
"""

import logging
import threading
import time
from typing import Any

from shared.constants import HOST_TEAM
from shared.enums import MessageKind, Role, SendStatus
from shared.protocol import Message, format_relayed
from relay.config import RelayConfig
from relay.network.connector import Connector
from relay.network.errors import BindError, ConnectError, ConnectionFault
from relay.network.inbound import Dispatcher, InboundQueue, MessageHandler
from relay.network.listener import Listener
from relay.network.read_loop import ReadLoop
from relay.network.registry import ConnectionRegistry
from relay.network.session import Session


logger = logging.getLogger(__name__)


class NetworkManager:
    """
    Host or peer side of the relay, chosen by ``config.role``.

    Typical use::

        manager = NetworkManager(RelayConfig.peer("Red", "192.168.1.20"))
        manager.subscribe(on_message)
        manager.start()
        ...
        manager.process_messages()  # once per frame
        manager.send("move:3,4")
        ...
        manager.stop()
    """

    def __init__(self, config: RelayConfig):
        self._config = config

        self._registry = ConnectionRegistry()
        self._queue = InboundQueue()
        self._dispatcher = Dispatcher(self._queue)

        # Host side
        self._listener: Listener | None = None

        # Peer side
        self._peer_session: Session | None = None

        # Every read loop started since start(), for joining on stop()
        self._read_loops: list[ReadLoop] = []
        self._loops_lock = threading.Lock()

        self._lifecycle_lock = threading.Lock()
        self._running = False

    def __enter__(self) -> "NetworkManager":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> RelayConfig:
        return self._config

    @property
    def role(self) -> Role:
        return self._config.role

    @property
    def is_host(self) -> bool:
        return self._config.is_host

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        """Host: still accepting. Peer: the host connection is up."""
        if self.is_host:
            return self._running and self._listener is not None and self._listener.is_accepting
        return self._peer_session is not None and self._peer_session.is_connected

    @property
    def port(self) -> int:
        """Port in use (the real one when the host bound port 0)."""
        if self.is_host and self._listener is not None:
            return self._listener.port
        return self._config.port

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def connection_count(self) -> int:
        return len(self._registry)

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    @property
    def _log_role(self) -> str:
        return "Host" if self.is_host else "Peer"

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """
        Start listening (host) or connect to the host (peer).

        Calling start() on a running manager does nothing.

        Raises:
            BindError: host could not bind its port
            ConnectError: peer could not reach the host
        """
        with self._lifecycle_lock:
            if self._running:
                return

            self._registry = ConnectionRegistry()
            self._queue = InboundQueue()
            self._dispatcher.queue = self._queue

            if self.is_host:
                self._start_host()
            else:
                self._start_peer()

            self._running = True

    def stop(self) -> None:
        """
        Tear everything down. Idempotent and best-effort.

        The listening socket closes before any session does, so nothing can
        register while teardown is in progress. Read loops are joined with a
        bounded wait; one that does not exit in time is abandoned.
        """
        with self._lifecycle_lock:
            if not self._running:
                return
            self._running = False
            timeout = self._config.shutdown_timeout
            logger.info(f"[{self._log_role}] Shutting down...")

            if self.is_host:
                if self._listener is not None:
                    self._listener.close(timeout)
                closed = self._registry.close_all()
                logger.info(f"[Host] Closed {closed} client connection(s)")
            elif self._peer_session is not None:
                self._peer_session.close()

            self._join_read_loops(timeout)

            dropped = self._queue.clear()
            if dropped:
                logger.debug(f"[{self._log_role}] Discarded {dropped} undelivered message(s)")

            logger.info(f"[{self._log_role}] Stopped")

    def _join_read_loops(self, timeout: float) -> None:
        with self._loops_lock:
            loops, self._read_loops = self._read_loops, []

        deadline = time.monotonic() + timeout
        for loop in loops:
            remaining = max(0.0, deadline - time.monotonic())
            if not loop.join(remaining):
                logger.warning(
                    f"[{self._log_role}] Read loop for {loop.session.label} did not exit "
                    "in time; abandoning it"
                )

    def _track(self, loop: ReadLoop) -> None:
        with self._loops_lock:
            self._read_loops = [other for other in self._read_loops if other.is_alive]
            self._read_loops.append(loop)

    # =========================================================================
    # Host
    # =========================================================================

    def _start_host(self) -> None:
        self._listener = Listener(
            self._config.port,
            on_accept=self._accept_session,
            bind_address=self._config.bind_address,
            poll_interval=self._config.accept_poll_interval,
        )
        try:
            self._listener.start()
        except BindError as e:
            logger.error(f"[Host] Error starting: {e}")
            self._listener = None
            raise
        logger.info(f"[Host] Started on port {self.port}")

    def _accept_session(self, session: Session) -> None:
        """Register a freshly accepted session and start reading it."""
        self._registry.add(session)
        loop = ReadLoop(
            session,
            on_line=self._relay_line,
            on_exit=self._release_session,
            on_handshake=self._announce_join,
            expect_handshake=True,
            role_label="Host",
        )
        self._track(loop)
        loop.start()

    def _announce_join(self, session: Session) -> None:
        if self._config.announce_joins:
            self._queue.enqueue(Message(
                payload=f"Client from {session.address} joined as {session.team}",
                kind=MessageKind.NOTICE,
            ))

    def _relay_line(self, session: Session, line: str) -> None:
        """A peer sent a line: surface it locally and relay it to everyone else."""
        self._queue.enqueue(Message(payload=line, origin_team=session.team))
        self.broadcast(line, exclude=session, origin_team=session.team)

    def _release_session(self, session: Session) -> None:
        # The only place a live session leaves the registry
        self._registry.remove(session)

    def broadcast(
        self,
        payload: str,
        exclude: Session | str | None = None,
        origin_team: str | None = None,
    ) -> int:
        """
        Send a payload to every connected peer except ``exclude``.

        A failed write tears down that one session and delivery carries on to
        the rest. With no exclusion the payload is also mirrored into the
        local queue so this process's subscribers see it.

        Args:
            payload: Opaque text to send
            exclude: Session (or session id) to skip, normally the sender
            origin_team: Team prefixed on the wire as ``[team] payload``

        Returns:
            Number of peers the payload was written to
        """
        if not self.is_host:
            raise RuntimeError("broadcast is only available on the host")

        exclude_id = exclude.session_id if isinstance(exclude, Session) else exclude
        line = format_relayed(origin_team, payload)

        sent_count = 0
        for session in self._registry.snapshot():
            if session.session_id == exclude_id:
                continue
            try:
                session.write_line(line)
                sent_count += 1
            except ConnectionFault as e:
                logger.error(f"[Host] Error sending to client: {e}")
                # Its read loop notices the close and removes it
                session.close()

        if exclude is None:
            self._queue.enqueue(Message(payload=payload, origin_team=origin_team, kind=MessageKind.LOCAL))

        return sent_count

    # =========================================================================
    # Peer
    # =========================================================================

    def _start_peer(self) -> None:
        self._peer_session = None
        connector = Connector(
            self._config.host_address,
            self._config.port,
            self._config.team,
            timeout=self._config.connect_timeout,
        )
        try:
            session = connector.connect()
        except ConnectError as e:
            logger.error(f"[Peer] Could not start: {e}")
            raise

        self._peer_session = session
        loop = ReadLoop(
            session,
            on_line=self._receive_from_host,
            on_exit=self._host_lost,
            expect_handshake=False,
            role_label="Peer",
        )
        self._track(loop)
        loop.start()

    def _receive_from_host(self, session: Session, line: str) -> None:
        # The host already prefixed the origin team onto the line
        self._queue.enqueue(Message(payload=line))

    def _host_lost(self, session: Session) -> None:
        if self._running:
            logger.warning(f"[Peer] Lost connection to server at {session.address}")

    # =========================================================================
    # Sending and dispatch
    # =========================================================================

    def send(self, payload: str) -> SendStatus:
        """
        Send an action message.

        Host: broadcast ``[Server] payload`` to every peer and mirror it
        locally. Peer: write it to the host, which relays it onward.
        """
        if self.is_host:
            if not self._running:
                logger.warning("[Host] Not running; message not sent")
                return SendStatus.NOT_CONNECTED
            self.broadcast(payload, origin_team=HOST_TEAM)
            return SendStatus.SENT

        session = self._peer_session
        if session is None or not session.is_connected:
            logger.warning("[Peer] Not connected to server; message not sent")
            return SendStatus.NOT_CONNECTED

        try:
            session.write_line(payload)
        except ConnectionFault as e:
            logger.error(f"[Peer] Error sending action message: {e}")
            session.close()
            return SendStatus.FAILED
        return SendStatus.SENT

    def subscribe(self, handler: MessageHandler) -> None:
        """Register a handler for dispatched messages."""
        self._dispatcher.subscribe(handler)

    def unsubscribe(self, handler: MessageHandler) -> bool:
        return self._dispatcher.unsubscribe(handler)

    def process_messages(self) -> int:
        """
        Deliver everything received since the last call. Call once per tick.

        Returns:
            Number of messages dispatched
        """
        return self._dispatcher.dispatch()

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        stats = {
            "role": self.role.value,
            "running": self._running,
            "connected": self.is_connected,
            "port": self.port,
            "pending_messages": len(self._queue),
            "subscribers": self._dispatcher.subscriber_count,
        }
        if self.is_host:
            stats.update(self._registry.get_stats())
        else:
            stats["team"] = self._config.team
            stats["server"] = f"{self._config.host_address}:{self._config.port}"
        return stats
