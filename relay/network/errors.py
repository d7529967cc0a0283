"""
Relay exception hierarchy.

Start-up failures (BindError, ConnectError) propagate to whoever called
NetworkManager.start(). Per-connection faults never leave the connection
they happened on.
"""

from shared.protocol import MalformedHandshake


class RelayError(Exception):
    """Base class for relay failures."""


class BindError(RelayError):
    """The host could not bind or listen on its port."""

    def __init__(self, address: str, port: int, reason: str):
        super().__init__(f"cannot listen on {address}:{port}: {reason}")
        self.address = address
        self.port = port


class ConnectError(RelayError):
    """A peer could not reach the host."""

    def __init__(self, address: str, port: int, reason: str):
        super().__init__(f"cannot connect to {address}:{port}: {reason}")
        self.address = address
        self.port = port


class ConnectionFault(RelayError):
    """A read or write on one session failed."""

    def __init__(self, session_label: str, operation: str, reason: str):
        super().__init__(f"{operation} failed on {session_label}: {reason}")
        self.session_label = session_label
        self.operation = operation


__all__ = [
    "RelayError",
    "BindError",
    "ConnectError",
    "ConnectionFault",
    "MalformedHandshake",
]
