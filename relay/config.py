"""
Relay configuration.

The core never reads the environment itself: the menu (or a command line)
builds a RelayConfig once at start-up and hands it to the NetworkManager.
load_config() is the environment-backed way to build one.
"""

import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from shared.constants import (
    ACCEPT_POLL_INTERVAL,
    CONNECT_TIMEOUT,
    DEFAULT_BIND_ADDRESS,
    DEFAULT_HOST_ADDRESS,
    DEFAULT_PORT,
    HOST_TEAM,
    SHUTDOWN_TIMEOUT,
    TICK_INTERVAL,
)
from shared.enums import Role


@dataclass(frozen=True)
class RelayConfig:
    """Immutable role and network settings for one process."""

    role: Role = Role.HOST
    port: int = DEFAULT_PORT

    # Peer mode only
    host_address: str = DEFAULT_HOST_ADDRESS
    team: str = ""

    # Host mode only
    bind_address: str = DEFAULT_BIND_ADDRESS
    announce_joins: bool = True
    accept_poll_interval: float = ACCEPT_POLL_INTERVAL

    # Timing
    connect_timeout: float = CONNECT_TIMEOUT
    shutdown_timeout: float = SHUTDOWN_TIMEOUT
    tick_interval: float = TICK_INTERVAL

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port must be between 0 and 65535, got {self.port}")
        if self.shutdown_timeout < 0 or self.connect_timeout <= 0:
            raise ValueError("timeouts must be positive")

    @property
    def is_host(self) -> bool:
        return self.role == Role.HOST

    @property
    def display_team(self) -> str:
        """Team shown to the user; the host has none of its own."""
        return self.team if not self.is_host and self.team else HOST_TEAM

    @classmethod
    def host(cls, port: int = DEFAULT_PORT, **kwargs) -> "RelayConfig":
        """Settings for the listening side."""
        return cls(role=Role.HOST, port=port, **kwargs)

    @classmethod
    def peer(
        cls,
        team: str,
        host_address: str = DEFAULT_HOST_ADDRESS,
        port: int = DEFAULT_PORT,
        **kwargs
    ) -> "RelayConfig":
        """Settings for a connecting peer playing for ``team``."""
        return cls(role=Role.PEER, port=port, host_address=host_address, team=team, **kwargs)

    def with_overrides(self, **changes) -> "RelayConfig":
        """Copy with some fields replaced (command-line flags over environment)."""
        changes = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **changes)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config() -> RelayConfig:
    """Load settings from environment variables (and a .env file, if present)."""
    load_dotenv()

    return RelayConfig(
        role=Role(os.getenv("RELAY_ROLE", Role.HOST.value).strip().lower()),
        port=int(os.getenv("RELAY_PORT", str(DEFAULT_PORT))),
        host_address=os.getenv("RELAY_HOST_ADDRESS", DEFAULT_HOST_ADDRESS),
        team=os.getenv("RELAY_TEAM", ""),
        bind_address=os.getenv("RELAY_BIND_ADDRESS", DEFAULT_BIND_ADDRESS),
        announce_joins=_env_bool("RELAY_ANNOUNCE_JOINS", True),
        connect_timeout=float(os.getenv("RELAY_CONNECT_TIMEOUT", str(CONNECT_TIMEOUT))),
        shutdown_timeout=float(os.getenv("RELAY_SHUTDOWN_TIMEOUT", str(SHUTDOWN_TIMEOUT))),
        tick_interval=float(os.getenv("RELAY_TICK_INTERVAL", str(TICK_INTERVAL))),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
