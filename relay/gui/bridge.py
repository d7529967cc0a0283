"""
Qt adapter for the relay core.

A QTimer on the GUI thread plays the role of the frame tick: every timeout
drains the NetworkManager's inbound queue, and each message is re-emitted as
a Qt signal so widgets never touch the network threads.
"""

import logging

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from shared.enums import SendStatus
from shared.protocol import Message
from relay.network import NetworkManager, RelayError


logger = logging.getLogger(__name__)


class MessagePump(QObject):
    """
    Drives NetworkManager.process_messages() from the Qt event loop.

    Signals:
        message_received: Display text of each dispatched message
        message_dispatched: The Message object itself
        connection_changed: Connected flag flipped (is_connected)
        error_occurred: Start-up or send problem (error_message)
    """

    message_received = pyqtSignal(str)
    message_dispatched = pyqtSignal(object)
    connection_changed = pyqtSignal(bool)
    error_occurred = pyqtSignal(str)

    def __init__(self, manager: NetworkManager, interval_ms: int | None = None, parent=None):
        super().__init__(parent)

        self._manager = manager
        self._connected = False

        if interval_ms is None:
            interval_ms = max(1, int(manager.config.tick_interval * 1000))
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.tick)

        manager.subscribe(self._on_message)

    @property
    def manager(self) -> NetworkManager:
        return self._manager

    @property
    def is_active(self) -> bool:
        return self._timer.isActive()

    def start(self) -> bool:
        """
        Start the manager and the tick timer.

        Returns:
            True if the manager started
        """
        try:
            self._manager.start()
        except RelayError as e:
            logger.error(f"Relay failed to start: {e}")
            self.error_occurred.emit(str(e))
            return False

        self._timer.start()
        self._update_connection()
        return True

    def stop(self) -> None:
        self._timer.stop()
        self._manager.stop()
        self._update_connection()

    def tick(self) -> int:
        """One frame: drain the queue and refresh the connection flag."""
        count = self._manager.process_messages()
        self._update_connection()
        return count

    def send(self, text: str) -> bool:
        status = self._manager.send(text)
        if status != SendStatus.SENT:
            self.error_occurred.emit(f"Message not sent ({status.value})")
            return False
        return True

    def shutdown(self) -> None:
        """Stop and detach from the manager."""
        self.stop()
        self._manager.unsubscribe(self._on_message)

    def _on_message(self, message: Message) -> None:
        self.message_dispatched.emit(message)
        self.message_received.emit(message.text)

    def _update_connection(self) -> None:
        connected = self._manager.is_connected
        if connected != self._connected:
            self._connected = connected
            self.connection_changed.emit(connected)
