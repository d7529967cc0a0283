"""
Communication test window.

A menu picks the role (server, or a client on one of the teams); the second
screen sends test messages and logs everything the relay delivers.
"""

import logging
from datetime import datetime
from html import escape
from typing import Optional

from PyQt6.QtWidgets import (
    QMainWindow, QStackedWidget, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QLineEdit, QTextEdit, QGroupBox
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QFont, QTextCursor

from shared.enums import MessageKind, Role
from shared.protocol import Message
from relay.config import RelayConfig
from relay.network import NetworkManager
from relay.gui.bridge import MessagePump
from relay.gui.styles import (
    MAIN_STYLESHEET, MENU_TEAMS, TEAM_COLORS,
    DEFAULT_TEAM_COLOR, NOTICE_COLOR, ERROR_COLOR
)


logger = logging.getLogger(__name__)


class CommunicationWindow(QMainWindow):
    """
    Menu plus message screen.

    The base config supplies address, port and timing; the menu fills in the
    role and team, and the resulting config is fixed for the rest of the run.
    """

    def __init__(self, base_config: RelayConfig):
        super().__init__()

        self.setWindowTitle("Team Relay")
        self.setMinimumSize(640, 480)
        self.setStyleSheet(MAIN_STYLESHEET)

        self._base_config = base_config
        self._pump: Optional[MessagePump] = None

        self._setup_ui()

    def _setup_ui(self) -> None:
        self._stack = QStackedWidget()
        self._stack.setObjectName("centralWidget")
        self.setCentralWidget(self._stack)

        self._stack.addWidget(self._create_menu())
        self._stack.addWidget(self._create_message_screen())
        self._stack.setCurrentIndex(0)

    def _create_menu(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        title = QLabel("TEAM RELAY")
        title.setObjectName("titleLabel")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(title)

        server_btn = QPushButton("Start Server")
        server_btn.clicked.connect(self._on_select_server)
        layout.addWidget(server_btn)

        for team in MENU_TEAMS:
            team_btn = QPushButton(f"Join as {team}")
            team_btn.clicked.connect(lambda _checked, t=team: self._on_select_team(t))
            layout.addWidget(team_btn)

        self._menu_status = QLabel(
            f"Server address: {self._base_config.host_address}:{self._base_config.port}"
        )
        self._menu_status.setStyleSheet("color: #7F8C8D;")
        self._menu_status.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._menu_status)

        return widget

    def _create_message_screen(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)

        self._role_label = QLabel("")
        self._role_label.setFont(QFont("Arial", 12, QFont.Weight.Bold))
        layout.addWidget(self._role_label)

        self._log = QTextEdit()
        self._log.setReadOnly(True)
        self._log.setFont(QFont("Consolas", 9))
        layout.addWidget(self._log)

        send_group = QGroupBox("Send")
        send_layout = QHBoxLayout(send_group)

        self._message_input = QLineEdit()
        self._message_input.setPlaceholderText("Action message...")
        self._message_input.returnPressed.connect(self._on_send_input)
        send_layout.addWidget(self._message_input)

        send_btn = QPushButton("Send")
        send_btn.clicked.connect(self._on_send_input)
        send_layout.addWidget(send_btn)

        test_btn = QPushButton("Send Test Message")
        test_btn.clicked.connect(self._on_send_test_message)
        send_layout.addWidget(test_btn)

        layout.addWidget(send_group)

        return widget

    # =========================================================================
    # Menu
    # =========================================================================

    def _on_select_server(self) -> None:
        self._start(self._base_config.with_overrides(role=Role.HOST))

    def _on_select_team(self, team: str) -> None:
        self._start(self._base_config.with_overrides(role=Role.PEER, team=team))

    def _start(self, config: RelayConfig) -> None:
        pump = MessagePump(NetworkManager(config), parent=self)
        pump.message_dispatched.connect(self._on_message)
        pump.connection_changed.connect(self._on_connection_changed)
        pump.error_occurred.connect(self._on_error)

        if not pump.start():
            self._menu_status.setText("Could not start; see the log for details")
            pump.shutdown()
            pump.deleteLater()
            return

        self._pump = pump
        self._role_label.setText(
            f"Server on port {pump.manager.port}" if config.is_host
            else f"Team {config.team} @ {config.host_address}:{config.port}"
        )
        self._stack.setCurrentIndex(1)

    # =========================================================================
    # Messages
    # =========================================================================

    def _on_send_input(self) -> None:
        text = self._message_input.text().strip()
        if text and self._pump:
            self._pump.send(text)
            self._message_input.clear()

    def _on_send_test_message(self) -> None:
        if not self._pump:
            return
        text = f"Test message from {self._pump.manager.config.display_team}"
        logger.info(f"Sending test message: {text}")
        self._pump.send(text)

    def _on_message(self, message: Message) -> None:
        if message.kind == MessageKind.NOTICE:
            self._append(message.payload, NOTICE_COLOR)
        else:
            team = message.origin_team or _team_from_text(message.payload)
            self._append(message.text, TEAM_COLORS.get(team, DEFAULT_TEAM_COLOR))

    def _on_connection_changed(self, connected: bool) -> None:
        if not connected and self._pump and not self._pump.manager.is_host:
            self._append("Disconnected from server", ERROR_COLOR)

    def _on_error(self, text: str) -> None:
        self._append(text, ERROR_COLOR)

    def _append(self, text: str, color: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        html = f'<span style="color: #7F8C8D;">[{timestamp}]</span> '
        html += f'<span style="color: {color};">{escape(text)}</span><br>'

        self._log.moveCursor(QTextCursor.MoveOperation.End)
        self._log.insertHtml(html)
        self._log.moveCursor(QTextCursor.MoveOperation.End)

    def closeEvent(self, event) -> None:
        if self._pump:
            self._pump.shutdown()
        super().closeEvent(event)


def _team_from_text(text: str) -> Optional[str]:
    """Pick ``team`` out of a relayed ``[team] payload`` line, for coloring."""
    if text.startswith("[") and "] " in text:
        return text[1:text.index("] ")]
    return None
