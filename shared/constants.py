"""
Relay constants.
Wire-level values are shared by host and peers and must not drift.
"""

# Wire format
ENCODING = "utf-8"
LINE_TERMINATOR = "\n"
JOIN_PREFIX = "JOIN:"

# Team tags
UNKNOWN_TEAM = "Unknown"
HOST_TEAM = "Server"  # Tag on frames the host originates itself

# Network defaults
DEFAULT_PORT = 7777
DEFAULT_HOST_ADDRESS = "127.0.0.1"
DEFAULT_BIND_ADDRESS = "0.0.0.0"
LISTEN_BACKLOG = 16

# Timing (seconds)
CONNECT_TIMEOUT = 5.0
SHUTDOWN_TIMEOUT = 2.0
ACCEPT_POLL_INTERVAL = 0.25
TICK_INTERVAL = 1 / 60  # Matches a 60 fps frame loop
