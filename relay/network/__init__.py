"""
Network layer for the team relay.

Provides the dual-mode NetworkManager plus the pieces it is built from:
session registry, accept loop, connector, read loops and the inbound queue.
"""

from relay.network.connector import Connector
from relay.network.errors import (
    BindError,
    ConnectError,
    ConnectionFault,
    MalformedHandshake,
    RelayError,
)
from relay.network.inbound import Dispatcher, InboundQueue
from relay.network.listener import Listener
from relay.network.manager import NetworkManager
from relay.network.read_loop import ReadLoop
from relay.network.registry import ConnectionRegistry
from relay.network.session import Session


__all__ = [
    "NetworkManager",
    "ConnectionRegistry",
    "Session",
    "Listener",
    "Connector",
    "ReadLoop",
    "InboundQueue",
    "Dispatcher",
    "RelayError",
    "BindError",
    "ConnectError",
    "ConnectionFault",
    "MalformedHandshake",
]
