"""
Tests for the communication window.

Drives the menu handlers directly against loopback relays on the offscreen
Qt platform.

Run with: python3 -m pytest tests/test_gui -v
"""

import os
import socket
import sys
import time
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from PyQt6.QtWidgets import QApplication

from shared.enums import Role
from relay.config import RelayConfig
from relay.network import NetworkManager
from relay.gui.window import CommunicationWindow


LOOPBACK = "127.0.0.1"


class TestCommunicationWindow(unittest.TestCase):
    """Menu selection and the test message button."""

    @classmethod
    def setUpClass(cls):
        os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
        cls.app = QApplication.instance() or QApplication([])

    def setUp(self):
        self.windows: list[CommunicationWindow] = []
        self.managers: list[NetworkManager] = []

    def tearDown(self):
        for window in self.windows:
            if window._pump:
                window._pump.shutdown()
            window.close()
        for manager in self.managers:
            manager.stop()

    def make_window(self, base_config: RelayConfig) -> CommunicationWindow:
        window = CommunicationWindow(base_config)
        self.windows.append(window)
        return window

    def start_host(self) -> tuple[NetworkManager, list]:
        received = []
        host = NetworkManager(RelayConfig.host(
            port=0, bind_address=LOOPBACK, accept_poll_interval=0.05, announce_joins=False
        ))
        host.subscribe(received.append)
        self.managers.append(host)
        host.start()
        return host, received

    def wait_for(self, predicate, tick, timeout: float = 3.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            tick()
            if predicate():
                return True
            time.sleep(0.01)
        return predicate()

    def test_server_test_message(self):
        window = self.make_window(RelayConfig.host(
            port=0, bind_address=LOOPBACK, accept_poll_interval=0.05, announce_joins=False
        ))

        window._on_select_server()
        self.assertIsNotNone(window._pump)
        self.assertEqual(window._stack.currentIndex(), 1)

        window._on_send_test_message()
        window._pump.tick()

        self.assertIn("[Server] Test message from Server", window._log.toPlainText())

    def test_team_test_message_reaches_host(self):
        host, received = self.start_host()
        window = self.make_window(RelayConfig(host_address=LOOPBACK, port=host.port))

        window._on_select_team("Red")
        self.assertIsNotNone(window._pump)
        self.assertTrue(self.wait_for(lambda: host.registry.teams() == ["Red"], lambda: None))

        window._on_send_test_message()

        self.assertTrue(self.wait_for(lambda: received, host.process_messages))
        self.assertEqual(received[0].payload, "Test message from Red")
        self.assertEqual(received[0].origin_team, "Red")

    def test_selection_keeps_base_settings(self):
        host, _ = self.start_host()
        base = RelayConfig(
            host_address=LOOPBACK,
            port=host.port,
            connect_timeout=1.5,
            accept_poll_interval=0.1,
            log_level="DEBUG",
        )
        window = self.make_window(base)

        window._on_select_team("Blue")

        config = window._pump.manager.config
        self.assertEqual(config.role, Role.PEER)
        self.assertEqual(config.team, "Blue")
        self.assertEqual(config.connect_timeout, 1.5)
        self.assertEqual(config.accept_poll_interval, 0.1)
        self.assertEqual(config.log_level, "DEBUG")

    def test_failed_join_stays_on_menu(self):
        spare = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        spare.bind((LOOPBACK, 0))
        port = spare.getsockname()[1]
        spare.close()

        window = self.make_window(RelayConfig(host_address=LOOPBACK, port=port, connect_timeout=1.0))
        window._on_select_team("Blue")

        self.assertIsNone(window._pump)
        self.assertEqual(window._stack.currentIndex(), 0)
        self.assertIn("Could not start", window._menu_status.text())


if __name__ == "__main__":
    unittest.main()
