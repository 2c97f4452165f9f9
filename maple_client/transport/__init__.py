"""Transport module - HTTP command dispatch."""

from .http_client import (
    DEFAULT_REQUEST_TIMEOUT,
    CommandDispatcher,
    DispatchConfig,
    build_url,
)

__all__ = [
    "DEFAULT_REQUEST_TIMEOUT",
    "CommandDispatcher",
    "DispatchConfig",
    "build_url",
]
