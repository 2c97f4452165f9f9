"""UDP broadcast listener for Maple server discovery.

Servers on the local network periodically broadcast ``<name>::<address>``
on UDP port 17756. A discovery session binds that port, collects every
distinct server it hears for a fixed window, then closes the socket.
"""

import asyncio
import logging
import socket
from typing import Callable, Optional

from ..exceptions import BindError, DiscoveryInProgressError, MalformedPayloadError
from .models import HostRecord, Registry
from .timeout_handler import DiscoveryWindow

logger = logging.getLogger(__name__)


# Default UDP discovery port (fixed)
DEFAULT_DISCOVERY_PORT = 17756

# Default listen window in seconds
DEFAULT_TIMEOUT = 5.0

# Largest datagram read in one receive
MAX_DATAGRAM_SIZE = 4096


class _AdvertisementProtocol(asyncio.DatagramProtocol):
    """Feeds received datagrams into a queue.

    Queue items are ``(data, addr)`` for a datagram and ``(None, exc)``
    once the socket is gone.
    """

    def __init__(self, queue: asyncio.Queue):
        self._queue = queue

    def datagram_received(self, data: bytes, addr) -> None:
        self._queue.put_nowait((data, addr))

    def error_received(self, exc: Exception) -> None:
        # ICMP errors on an unconnected UDP socket do not end the session
        logger.debug("Discovery socket error: %s", exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self._queue.put_nowait((None, exc))


class UDPListener:
    """Listens for server advertisements and fills a Registry.

    Only one session runs per listener at a time. The listening window is
    the sole stop condition; calling ``close()`` from another task aborts
    the session early and returns what has been collected.
    """

    def __init__(self, port: int = DEFAULT_DISCOVERY_PORT, host: str = "0.0.0.0"):
        """Initialize UDP listener.

        Args:
            port: UDP port to listen on. Default: 17756.
            host: Local address to bind. Default: all interfaces.
        """
        self.port = port
        self.host = host
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._queue: Optional[asyncio.Queue] = None
        self._active = False

    @property
    def active(self) -> bool:
        """Whether a discovery session is running."""
        return self._active

    @property
    def listening(self) -> bool:
        """Whether the UDP socket is bound and receiving."""
        return self._transport is not None

    def _create_socket(self) -> socket.socket:
        """Create and bind the non-blocking UDP socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.bind((self.host, self.port))
        except OSError as e:
            sock.close()
            raise BindError(self.host, self.port, str(e)) from e
        sock.setblocking(False)
        return sock

    async def _open(self) -> None:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        sock = self._create_socket()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _AdvertisementProtocol(queue),
                sock=sock,
            )
        except OSError as e:
            sock.close()
            raise BindError(self.host, self.port, str(e)) from e
        self._queue = queue
        self._transport = transport

    async def discover(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        registry: Optional[Registry] = None,
    ) -> Registry:
        """Listen for advertisements until the window closes.

        Args:
            timeout: Listening window in seconds, measured from the start
                of the session. Default: 5.
            registry: Registry to fill. A new one is created if omitted.

        Returns:
            The registry, holding every distinct server heard, in the order
            first heard. Empty if the network was quiet.

        Raises:
            BindError: If the UDP port cannot be bound.
            DiscoveryInProgressError: If this listener or the registry is
                already in use by another session.
        """
        if registry is None:
            registry = Registry()
        await self._run_session(registry, timeout)
        return registry

    async def listen_all(self, timeout: float = DEFAULT_TIMEOUT) -> list[HostRecord]:
        """Listen for the full window and return the discovered hosts."""
        registry = await self.discover(timeout)
        return registry.snapshot()

    async def listen_one(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        name_filter: Optional[str] = None,
    ) -> Optional[HostRecord]:
        """Listen until one server (optionally with a given name) is heard.

        Args:
            timeout: Maximum time to wait in seconds.
            name_filter: Only accept servers advertising this name.

        Returns:
            The first matching HostRecord, or None if the window closed first.
        """
        def matches(record: HostRecord) -> bool:
            return name_filter is None or record.name == name_filter

        return await self._run_session(Registry(), timeout, stop_when=matches)

    async def _run_session(
        self,
        registry: Registry,
        timeout: float,
        stop_when: Optional[Callable[[HostRecord], bool]] = None,
    ) -> Optional[HostRecord]:
        if self._active:
            raise DiscoveryInProgressError(
                f"Discovery already running on UDP port {self.port}"
            )
        registry.claim_writer()
        self._active = True
        try:
            await self._open()
            logger.info(
                "Listening for servers on UDP port %d (%.1fs)...", self.port, timeout
            )
            try:
                return await self._receive_loop(registry, DiscoveryWindow(timeout), stop_when)
            finally:
                self.close()
        finally:
            self._active = False
            registry.release_writer()

    async def _receive_loop(
        self,
        registry: Registry,
        window: DiscoveryWindow,
        stop_when: Optional[Callable[[HostRecord], bool]],
    ) -> Optional[HostRecord]:
        """Race each receive against the session window.

        The window task is created once, so it keeps counting down across
        iterations. If a datagram and the window expiry land in the same
        step, the datagram is handled before the session ends.
        """
        window.start()
        timeout_task = asyncio.ensure_future(window.wait())
        receive_task: Optional[asyncio.Future] = None

        try:
            while True:
                receive_task = asyncio.ensure_future(self._queue.get())
                done, _ = await asyncio.wait(
                    {timeout_task, receive_task},
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if receive_task in done:
                    data, detail = receive_task.result()
                    receive_task = None

                    if data is None:
                        if detail is not None:
                            logger.warning("Discovery socket failed: %s", detail)
                        else:
                            logger.info("Discovery socket closed before the window ended")
                        return None

                    record = self._handle_datagram(data, detail, registry)
                    if record is not None and stop_when is not None and stop_when(record):
                        return record

                if timeout_task in done:
                    logger.info(
                        "Discovery window of %.1fs ended with %d server(s)",
                        window.timeout, len(registry),
                    )
                    return None
        finally:
            pending = [t for t in (timeout_task, receive_task) if t is not None and not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    def _handle_datagram(self, data: bytes, addr, registry: Registry) -> Optional[HostRecord]:
        """Decode one datagram and add it to the registry.

        Returns:
            The record if it was newly added, otherwise None.
        """
        try:
            record = HostRecord.from_payload(data)
        except MalformedPayloadError as e:
            logger.debug("Ignoring datagram from %s: %s", addr, e)
            return None

        if not registry.add(record):
            logger.debug("Repeat advertisement from %s", record.address)
            return None

        logger.info("Found: %s", record)
        return record

    def close(self) -> None:
        """Close the UDP socket, ending any running session."""
        if self._transport is not None:
            self._transport.close()
            self._transport = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        self.close()
