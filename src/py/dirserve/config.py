from os import getenv

PORT: int = int(getenv("PORT", 8000))

# Name of the network interface to bind to, the platform default is picked
# when empty.
INTERFACE: str | None = getenv("DIRSERVE_INTERFACE") or None

# Platform index of the interface picked when none is given. On Linux, index
# 1 is usually the loopback, this varies across systems.
DEFAULT_INTERFACE_INDEX: int = 1

LOG_REQUESTS: bool = getenv("DIRSERVE_LOG_REQUESTS", "1") == "1"

# Seconds an idle keep-alive connection stays open
KEEPALIVE: float = float(getenv("DIRSERVE_KEEPALIVE", 5))

# Exit code for any fatal startup error
EXIT_STARTUP: int = 10

# EOF
