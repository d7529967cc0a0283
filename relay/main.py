#!/usr/bin/env python3
"""
Terminal harness for the team relay.

Usage:
    python -m relay.main host [--port PORT]
    python -m relay.main join TEAM [--address HOST] [--port PORT]

Lines typed on stdin are sent as action messages; everything received is
printed. The main thread plays the part of the frame loop and drains the
inbound queue every tick.
"""

import argparse
import logging
import sys
import threading
import time

from shared.enums import MessageKind, Role, SendStatus
from shared.protocol import Message
from relay.config import RelayConfig, load_config
from relay.network import NetworkManager, RelayError


logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Team relay terminal harness")
    parser.add_argument("--port", type=int, default=None, help="TCP port (default: RELAY_PORT or 7777)")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("host", help="Listen for peers and relay their messages")

    join = commands.add_parser("join", help="Connect to a host as a team")
    join.add_argument("team", help="Team name, e.g. Red or Blue")
    join.add_argument("--address", default=None, help="Host address (default: RELAY_HOST_ADDRESS)")

    return parser


def _level(args: argparse.Namespace) -> str | None:
    return args.log_level.upper() if args.log_level else None


def config_from_args(args: argparse.Namespace, base: RelayConfig) -> RelayConfig:
    """Command-line flags win over environment settings."""
    if args.command == "host":
        return base.with_overrides(role=Role.HOST, port=args.port, log_level=_level(args))
    return base.with_overrides(
        role=Role.PEER,
        team=args.team,
        host_address=args.address,
        port=args.port,
        log_level=_level(args),
    )


def print_message(message: Message) -> None:
    if message.kind == MessageKind.NOTICE:
        print(f"  * {message.payload}")
    else:
        print(f"  > {message.text}")


def read_stdin(manager: NetworkManager, done: threading.Event) -> None:
    """Send each stdin line until EOF."""
    for line in sys.stdin:
        text = line.rstrip("\n")
        if not text:
            continue
        if manager.send(text) != SendStatus.SENT:
            print("  ! message not sent")
    done.set()


def run(config: RelayConfig) -> int:
    manager = NetworkManager(config)
    manager.subscribe(print_message)

    try:
        manager.start()
    except RelayError as e:
        print(f"✗ {e}")
        return 1

    if config.is_host:
        print(f"Hosting on port {manager.port}. Type messages to broadcast; Ctrl+C to stop.")
    else:
        print(f"Joined {config.host_address}:{config.port} as {config.team}. Ctrl+C to stop.")

    done = threading.Event()
    threading.Thread(target=read_stdin, args=(manager, done), name="relay-stdin", daemon=True).start()

    try:
        while not done.is_set():
            manager.process_messages()
            if not config.is_host and not manager.is_connected:
                print("Connection to server lost")
                break
            time.sleep(config.tick_interval)
        manager.process_messages()
    except KeyboardInterrupt:
        print()
    finally:
        manager.stop()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the terminal harness."""
    args = build_parser().parse_args(argv)
    config = config_from_args(args, load_config())
    setup_logging(config.log_level)
    return run(config)


if __name__ == "__main__":
    sys.exit(main())
