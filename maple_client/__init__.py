"""Maple client - LAN server discovery and HTTP command dispatch."""

from .client import MapleClient
from .config import MapleConfig, load_config
from .discovery import HostRecord, Registry, UDPListener
from .exceptions import (
    BindError,
    ConfigError,
    DiscoveryInProgressError,
    MalformedPayloadError,
    MapleError,
)
from .transport import CommandDispatcher, DispatchConfig

__version__ = "0.1.0"

__all__ = [
    "MapleClient",
    "MapleConfig",
    "load_config",
    "HostRecord",
    "Registry",
    "UDPListener",
    "CommandDispatcher",
    "DispatchConfig",
    "MapleError",
    "BindError",
    "ConfigError",
    "DiscoveryInProgressError",
    "MalformedPayloadError",
]
