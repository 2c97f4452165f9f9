"""Maple client - discovery and command dispatch in one object.

Typical use:

    client = MapleClient()
    await client.start_scanning_for_advertising_servers()
    for server in client.servers:
        ok = await client.post_async(server.address, 5417, "led/on")
"""

import logging
from typing import Optional

from .config import MapleConfig
from .discovery.models import HostCallback, Registry
from .discovery.udp_listener import UDPListener
from .transport.http_client import CommandDispatcher, QueryParams

logger = logging.getLogger(__name__)


class MapleClient:
    """Finds Maple servers on the LAN and sends them commands.

    ``servers`` is owned by the client and keeps its contents after a scan
    ends. A later scan adds newly heard servers to it; call
    ``servers.clear()`` between scans to start afresh.
    """

    def __init__(self, config: Optional[MapleConfig] = None):
        self.config = config or MapleConfig()
        self.servers = Registry()
        self.listener = UDPListener(
            port=self.config.listen_port,
            host=self.config.listen_host,
        )
        self.dispatcher = CommandDispatcher(self.config.dispatch_config())

    def on_server_found(self, callback: HostCallback) -> None:
        """Register a callback fired for every newly discovered server."""
        self.servers.on_added(callback)

    async def start_scanning_for_advertising_servers(self) -> Registry:
        """Listen for the configured window and collect servers.

        Raises:
            BindError: If the discovery port cannot be bound.
            DiscoveryInProgressError: If a scan is already running.
        """
        await self.listener.discover(self.config.listen_timeout, self.servers)
        logger.debug("Scan finished: %s", self.servers.addresses())
        return self.servers

    def stop_scanning(self) -> None:
        """Close the discovery socket, ending a running scan early."""
        self.listener.close()

    # Commands

    def post(
        self,
        host: str,
        port: int,
        path: str,
        data: str = "",
        content_type: str = "text/plain",
    ) -> bool:
        return self.dispatcher.post_command(host, port, path, data, content_type)

    def get(self, host: str, port: int, path: str, params: Optional[QueryParams] = None) -> str:
        return self.dispatcher.get_command(host, port, path, params)

    def get_param(self, host: str, port: int, path: str, key: str, value: str) -> str:
        return self.dispatcher.get_param(host, port, path, key, value)

    def send_command(self, command: str, host_address: str) -> bool:
        return self.dispatcher.send_command(command, host_address)

    async def post_async(
        self,
        host: str,
        port: int,
        path: str,
        data: str = "",
        content_type: str = "text/plain",
    ) -> bool:
        return await self.dispatcher.post_command_async(host, port, path, data, content_type)

    async def get_async(
        self,
        host: str,
        port: int,
        path: str,
        params: Optional[QueryParams] = None,
    ) -> str:
        return await self.dispatcher.get_command_async(host, port, path, params)

    async def get_param_async(self, host: str, port: int, path: str, key: str, value: str) -> str:
        return await self.dispatcher.get_param_async(host, port, path, key, value)

    async def send_command_async(self, command: str, host_address: str) -> bool:
        return await self.dispatcher.send_command_async(command, host_address)
