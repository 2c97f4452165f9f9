"""HTTP command dispatch to discovered Maple servers.

Each call is a single request with its own session and timeout:
- POST http://{host}:{port}/{path}         - send a command with a body
- GET  http://{host}:{port}/{path}?{query} - query the server, read the body

Failures never raise. POST reports them as False and GET as an empty
string; the cause is logged.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

import requests

logger = logging.getLogger(__name__)

# Default per-request timeout in seconds
DEFAULT_REQUEST_TIMEOUT = 5.0

QueryParams = Union[Mapping[str, str], Sequence[tuple[str, str]]]


@dataclass
class DispatchConfig:
    """Per-call request configuration."""
    timeout: float = DEFAULT_REQUEST_TIMEOUT
    user_agent: str = "maple-client"


def build_url(host: str, port: Optional[int], path: str) -> str:
    """Build ``http://{host}:{port}/{path}``.

    ``port`` may be None when ``host`` already carries one.
    """
    authority = host if port is None else f"{host}:{port}"
    return f"http://{authority}/{path.lstrip('/')}"


def _ordered_params(params: Optional[QueryParams]) -> list[tuple[str, str]]:
    if params is None:
        return []
    if isinstance(params, Mapping):
        return list(params.items())
    return [(key, value) for key, value in params]


class CommandDispatcher:
    """Sends one-shot commands to a Maple server.

    Holds only its configuration. Every request opens and closes its own
    ``requests.Session``, so calls never share connection state and a
    failed call cannot affect the next one.
    """

    def __init__(self, config: Optional[DispatchConfig] = None):
        """Initialize dispatcher.

        Args:
            config: Request configuration. Default: 5s timeout.
        """
        self.config = config or DispatchConfig()

    def post_command(
        self,
        host: str,
        port: int,
        path: str,
        body: str = "",
        content_type: str = "text/plain",
        timeout: Optional[float] = None,
    ) -> bool:
        """POST a command to a server.

        Args:
            host: Server address.
            port: Server HTTP port.
            path: Request path, without the leading slash.
            body: Request body.
            content_type: Value of the Content-Type header.
            timeout: Request timeout in seconds. Default: config timeout.

        Returns:
            True if the server answered with a 2xx status.
        """
        response = self._request(
            "POST",
            build_url(host, port, path),
            timeout,
            data=body.encode("utf-8"),
            headers={"Content-Type": content_type, "Accept": content_type},
        )
        if response is None:
            return False
        if not response.ok:
            logger.warning("POST %s returned HTTP %d", response.url, response.status_code)
            return False
        return True

    def get_command(
        self,
        host: str,
        port: int,
        path: str,
        params: Optional[QueryParams] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """GET a path with query parameters and return the response body.

        Parameters are encoded in the order given.

        Returns:
            The response body, or an empty string if the request failed.
        """
        response = self._request(
            "GET",
            build_url(host, port, path),
            timeout,
            params=_ordered_params(params),
        )
        if response is None:
            return ""
        if not response.ok:
            logger.warning("GET %s returned HTTP %d", response.url, response.status_code)
        if "charset" not in response.headers.get("Content-Type", "").lower():
            response.encoding = "utf-8"
        return response.text

    def get_param(
        self,
        host: str,
        port: int,
        path: str,
        key: str,
        value: str,
        timeout: Optional[float] = None,
    ) -> str:
        """GET with a single ``key=value`` query parameter."""
        return self.get_command(host, port, path, [(key, value)], timeout=timeout)

    def send_command(
        self,
        command: str,
        host_address: str,
        timeout: Optional[float] = None,
    ) -> bool:
        """POST an empty command to ``http://{host_address}/{command}``.

        ``host_address`` may include a port, e.g. ``"10.0.0.5:5417"``.
        """
        response = self._request("POST", build_url(host_address, None, command), timeout)
        if response is None:
            return False
        if not response.ok:
            logger.warning("POST %s returned HTTP %d", response.url, response.status_code)
            return False
        return True

    async def post_command_async(self, *args, **kwargs) -> bool:
        """Awaitable ``post_command``, run in a worker thread."""
        return await asyncio.to_thread(self.post_command, *args, **kwargs)

    async def get_command_async(self, *args, **kwargs) -> str:
        """Awaitable ``get_command``, run in a worker thread."""
        return await asyncio.to_thread(self.get_command, *args, **kwargs)

    async def get_param_async(self, *args, **kwargs) -> str:
        """Awaitable ``get_param``, run in a worker thread."""
        return await asyncio.to_thread(self.get_param, *args, **kwargs)

    async def send_command_async(self, *args, **kwargs) -> bool:
        """Awaitable ``send_command``, run in a worker thread."""
        return await asyncio.to_thread(self.send_command, *args, **kwargs)

    def _request(
        self,
        method: str,
        url: str,
        timeout: Optional[float],
        **kwargs,
    ) -> Optional[requests.Response]:
        """Execute one HTTP request.

        Returns:
            The response, or None on connection failure or timeout.
        """
        if timeout is None:
            timeout = self.config.timeout

        with requests.Session() as session:
            session.headers["User-Agent"] = self.config.user_agent
            try:
                return session.request(method, url, timeout=timeout, **kwargs)
            except requests.Timeout:
                logger.warning("%s %s timed out after %.1fs", method, url, timeout)
            except requests.RequestException as e:
                logger.warning("%s %s failed: %s", method, url, e)
        return None
