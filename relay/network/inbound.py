"""
Inbound queue and dispatcher.

Read loops on background threads enqueue messages; the external tick (a game
loop, a Qt timer, the console harness) calls Dispatcher.dispatch() on one
thread to hand them to subscribers. Nothing here blocks on I/O.
"""

import logging
import threading
from collections import deque
from typing import Callable

from shared.protocol import Message


logger = logging.getLogger(__name__)

MessageHandler = Callable[[Message], None]


class InboundQueue:
    """Thread-safe FIFO of messages awaiting dispatch."""

    def __init__(self):
        self._items: deque[Message] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def enqueue(self, message: Message) -> None:
        with self._lock:
            self._items.append(message)

    def drain(self) -> list[Message]:
        """Take everything queued so far, oldest first."""
        with self._lock:
            if not self._items:
                return []
            items, self._items = self._items, deque()
        return list(items)

    def clear(self) -> int:
        """Discard pending messages. Returns how many were dropped."""
        with self._lock:
            dropped = len(self._items)
            self._items.clear()
        return dropped


class Dispatcher:
    """
    Fans drained messages out to subscribers.

    Every subscriber sees every message, in queue order. Subscribers run on the
    tick thread and must return promptly.
    """

    def __init__(self, queue: InboundQueue):
        self._queue = queue
        self._handlers: list[MessageHandler] = []
        self._lock = threading.Lock()

    @property
    def queue(self) -> InboundQueue:
        return self._queue

    @queue.setter
    def queue(self, queue: InboundQueue) -> None:
        self._queue = queue

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def subscribe(self, handler: MessageHandler) -> None:
        """Register a handler; registering the same one twice is a no-op."""
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)

    def unsubscribe(self, handler: MessageHandler) -> bool:
        """
        Remove a handler.

        Returns:
            True if it was registered
        """
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
            return True

    def dispatch(self) -> int:
        """
        Drain the queue once and notify subscribers.

        Returns:
            Number of messages dispatched
        """
        messages = self._queue.drain()
        if not messages:
            return 0

        with self._lock:
            handlers = list(self._handlers)

        for message in messages:
            for handler in handlers:
                try:
                    handler(message)
                except Exception as e:
                    logger.exception(f"Subscriber {handler!r} failed on {message.text!r}: {e}")

        return len(messages)
