"""
PyQt6 front end for the team relay.
"""

from relay.gui.bridge import MessagePump
from relay.gui.window import CommunicationWindow


__all__ = [
    "MessagePump",
    "CommunicationWindow",
]
