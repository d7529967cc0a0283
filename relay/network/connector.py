"""
Peer-side outbound connection.
"""

import logging
import socket

from shared.constants import CONNECT_TIMEOUT
from shared.protocol import format_join
from relay.network.errors import ConnectError, ConnectionFault
from relay.network.session import Session


logger = logging.getLogger(__name__)


class Connector:
    """Opens the single connection a peer keeps to the host."""

    def __init__(self, host_address: str, port: int, team: str, timeout: float = CONNECT_TIMEOUT):
        self.host_address = host_address
        self.port = port
        self.team = team
        self.timeout = timeout

    def connect(self) -> Session:
        """
        Connect and send the JOIN handshake.

        No retry: an unreachable host is reported straight back.

        Returns:
            An active Session for the host connection

        Raises:
            ConnectError: if the host cannot be reached or the handshake
                cannot be sent
        """
        try:
            sock = socket.create_connection((self.host_address, self.port), timeout=self.timeout)
        except OSError as e:
            logger.error(f"[Peer] Connection error to {self.host_address}:{self.port}: {e}")
            raise ConnectError(self.host_address, self.port, str(e)) from e

        sock.settimeout(None)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        session = Session(sock, (self.host_address, self.port), team=self.team)
        session.begin_handshake()

        try:
            session.write_line(format_join(self.team))
        except ConnectionFault as e:
            session.close()
            session.release_reader()
            raise ConnectError(self.host_address, self.port, str(e)) from e

        session.activate()
        logger.info(
            f"[Peer] Connected to server at {self.host_address}:{self.port}, "
            f"sent join message with team: {self.team}"
        )
        return session
