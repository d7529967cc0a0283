"""
Team relay GUI entry point.
"""

import sys
import logging

from PyQt6.QtWidgets import QApplication

from relay.config import load_config
from relay.gui.window import CommunicationWindow


def setup_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def main() -> int:
    """Main entry point."""
    config = load_config()
    setup_logging(config.log_level)

    app = QApplication(sys.argv)
    app.setApplicationName("Team Relay")

    window = CommunicationWindow(config)
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
