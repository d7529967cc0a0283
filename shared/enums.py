"""
Enumerations used throughout the relay.
"""
from enum import Enum, auto


class Role(str, Enum):
    """Which side of the relay this process plays."""
    HOST = "host"
    PEER = "peer"


class SessionState(Enum):
    """Lifecycle of a single TCP connection."""
    CONNECTING = auto()
    AWAITING_HANDSHAKE = auto()
    ACTIVE = auto()
    DISCONNECTED = auto()


class MessageKind(str, Enum):
    """Where an inbound message came from."""
    RECEIVED = "RECEIVED"  # Read off a socket
    LOCAL = "LOCAL"        # Host mirror of its own broadcast
    NOTICE = "NOTICE"      # Host status line (peer joined, etc.)


class SendStatus(str, Enum):
    """Outcome of a send request."""
    SENT = "SENT"
    NOT_CONNECTED = "NOT_CONNECTED"
    FAILED = "FAILED"
