"""Client configuration.

Settings come from dataclass defaults, then an optional YAML file, then
environment variables:

    listen_port: 17756
    listen_timeout: 5.0       # seconds (or listen_timeout_ms: 5000)
    listen_host: 0.0.0.0
    request_timeout: 5.0
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .discovery.udp_listener import DEFAULT_DISCOVERY_PORT, DEFAULT_TIMEOUT
from .exceptions import ConfigError
from .transport.http_client import DEFAULT_REQUEST_TIMEOUT, DispatchConfig

ENV_OVERRIDES = {
    "MAPLE_LISTEN_PORT": "listen_port",
    "MAPLE_LISTEN_TIMEOUT": "listen_timeout",
    "MAPLE_REQUEST_TIMEOUT": "request_timeout",
}


@dataclass
class MapleConfig:
    """Settings for discovery and command dispatch."""
    listen_port: int = DEFAULT_DISCOVERY_PORT
    listen_timeout: float = DEFAULT_TIMEOUT
    listen_host: str = "0.0.0.0"
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self):
        self.listen_port = _coerce(int, self.listen_port, "listen_port")
        self.listen_timeout = _coerce(float, self.listen_timeout, "listen_timeout")
        self.request_timeout = _coerce(float, self.request_timeout, "request_timeout")

        if not 0 < self.listen_port < 65536:
            raise ConfigError(f"listen_port out of range: {self.listen_port}")
        if self.listen_timeout < 0:
            raise ConfigError(f"listen_timeout must be >= 0, got {self.listen_timeout}")
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be > 0, got {self.request_timeout}")

    def dispatch_config(self) -> DispatchConfig:
        return DispatchConfig(timeout=self.request_timeout)


def _coerce(kind: type, value: Any, name: str) -> Any:
    if isinstance(value, bool):
        raise ConfigError(f"'{name}' must be a number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{name}' must be a number, got {value!r}") from e


def config_from_data(data: dict, source: str = "<inline>") -> MapleConfig:
    """Build a MapleConfig from a mapping. Unknown keys are ignored.

    Raises:
        ConfigError: If the data is not a mapping or a value is invalid.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a YAML mapping in {source}, got {type(data).__name__}")

    data = dict(data)
    if "listen_timeout_ms" in data and "listen_timeout" not in data:
        data["listen_timeout"] = _coerce(float, data["listen_timeout_ms"], "listen_timeout_ms") / 1000

    known = {f.name for f in fields(MapleConfig)}
    return MapleConfig(**{k: v for k, v in data.items() if k in known})


def load_config(
    file_path: Optional[Union[str, Path]] = None,
    environ: Optional[dict] = None,
) -> MapleConfig:
    """Load configuration from an optional YAML file and the environment.

    Args:
        file_path: YAML file to read. Defaults only if omitted.
        environ: Environment mapping. Default: ``os.environ``.

    Raises:
        FileNotFoundError: If ``file_path`` does not exist.
        ConfigError: If the file or an override is invalid.
    """
    data: dict = {}

    if file_path is not None:
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {file_path}: {e}") from e

        if loaded is not None:
            if not isinstance(loaded, dict):
                raise ConfigError(
                    f"Config must be a YAML mapping in {file_path}, got {type(loaded).__name__}"
                )
            data.update(loaded)

    env = os.environ if environ is None else environ
    for var, key in ENV_OVERRIDES.items():
        if env.get(var):
            data[key] = env[var]

    return config_from_data(data, source=str(file_path or "<defaults>"))
