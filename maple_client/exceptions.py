"""Error types raised by maple-client.

Only session-level discovery failures reach the caller as exceptions.
Per-datagram and per-request failures are handled inside the listener
and the dispatcher and surface through logging.
"""


class MapleError(Exception):
    """Base class for maple-client errors."""


class BindError(MapleError, OSError):
    """The discovery UDP port could not be bound."""

    def __init__(self, host: str, port: int, reason: str = ""):
        self.host = host
        self.port = port
        message = f"Could not bind UDP {host or '*'}:{port}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DiscoveryInProgressError(MapleError, RuntimeError):
    """A discovery session is already writing to this listener or registry."""


class MalformedPayloadError(MapleError, ValueError):
    """A broadcast payload could not be decoded into a host record."""

    def __init__(self, payload: bytes, reason: str):
        self.payload = payload
        self.reason = reason
        super().__init__(f"Malformed advertisement {payload[:64]!r}: {reason}")


class ConfigError(MapleError, ValueError):
    """Invalid configuration value."""
