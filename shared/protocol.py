"""
Line protocol for host-peer communication.

Every frame is one UTF-8 text line terminated by a newline. The first frame a
peer sends is the handshake ``JOIN:<team>``; everything after it is an opaque
payload. When the host relays a peer's payload it prefixes ``[<team>] ``.
"""

from dataclasses import dataclass, field
from datetime import datetime

from shared.constants import ENCODING, JOIN_PREFIX, LINE_TERMINATOR
from shared.enums import MessageKind


class MalformedHandshake(ValueError):
    """The first line from a peer was not a usable ``JOIN:<team>`` frame."""


@dataclass(frozen=True)
class Message:
    """An inbound message waiting for (or being) dispatched."""
    payload: str
    origin_team: str | None = None
    kind: MessageKind = MessageKind.RECEIVED
    received_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def text(self) -> str:
        """Display form, with the origin team prefixed when known."""
        return format_relayed(self.origin_team, self.payload)

    def __str__(self) -> str:
        return self.text


# =============================================================================
# Framing
# =============================================================================

def encode_line(payload: str) -> bytes:
    """Encode one payload as a wire frame."""
    if "\r" in payload or LINE_TERMINATOR in payload:
        # Readers split on \r, \n and \r\n alike; any of them would end the frame early
        payload = payload.replace("\r\n", " ").replace("\r", " ").replace(LINE_TERMINATOR, " ")
    return (payload + LINE_TERMINATOR).encode(ENCODING)


def strip_line(raw: str) -> str:
    """Drop the line terminator (and a stray carriage return) from a read line."""
    return raw.rstrip("\r\n")


# =============================================================================
# Handshake
# =============================================================================

def format_join(team: str) -> str:
    """Build the handshake frame a peer sends on connect."""
    return f"{JOIN_PREFIX}{team}"


def parse_join(line: str | None) -> str:
    """
    Extract the team from a handshake line.

    A ``JOIN:`` with nothing but whitespace after it is rejected rather than
    accepted as an empty team name, so the caller falls back to ``Unknown``
    and every session keeps a visible tag in ``[team]`` prefixes.

    Raises:
        MalformedHandshake: if the line is missing, lacks the ``JOIN:`` prefix,
            or names an empty team
    """
    if line is None:
        raise MalformedHandshake("no handshake received")
    if not line.startswith(JOIN_PREFIX):
        raise MalformedHandshake(f"expected {JOIN_PREFIX}<team>, got {line!r}")

    team = line[len(JOIN_PREFIX):].strip()
    if not team:
        raise MalformedHandshake("handshake named an empty team")
    return team


# =============================================================================
# Relay prefix
# =============================================================================

def format_relayed(team: str | None, payload: str) -> str:
    """Prefix a payload with its origin team, as the host does when relaying."""
    if team is None:
        return payload
    return f"[{team}] {payload}"
