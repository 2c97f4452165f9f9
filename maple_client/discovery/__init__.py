"""Discovery module - UDP broadcast discovery."""

from .models import ADVERTISEMENT_DELIMITER, HostRecord, Registry
from .timeout_handler import DiscoveryWindow
from .udp_listener import DEFAULT_DISCOVERY_PORT, DEFAULT_TIMEOUT, UDPListener

__all__ = [
    "ADVERTISEMENT_DELIMITER",
    "HostRecord",
    "Registry",
    "DiscoveryWindow",
    "UDPListener",
    "DEFAULT_DISCOVERY_PORT",
    "DEFAULT_TIMEOUT",
]
