"""Shared fixtures for maple-client tests."""

from __future__ import annotations

import asyncio
import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


def free_udp_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def free_tcp_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def wait_listening(listener, timeout: float = 2.0) -> None:
    """Wait until a discovery session has bound its socket."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not listener.listening:
        if loop.time() > deadline:
            raise AssertionError("listener never bound its socket")
        await asyncio.sleep(0.005)


@pytest.fixture
def udp_port():
    return free_udp_port()


@pytest.fixture
def sender():
    """Send raw datagrams to the loopback listener."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send(port: int, payload: bytes | str) -> None:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        sock.sendto(payload, ("127.0.0.1", port))

    yield send
    sock.close()


class _CommandHandler(BaseHTTPRequestHandler):
    """Minimal Maple-like server used by dispatcher tests."""

    def log_message(self, format, *args):
        pass

    def _reply(self, status: int, body: str = "", content_type: str = "text/plain",
               encoding: str = "utf-8") -> None:
        data = body.encode(encoding)
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self):
        self.server.requests.append(("GET", self.path, dict(self.headers), b""))
        if self.path.startswith("/missing"):
            self._reply(404, "not found")
        elif self.path.startswith("/weather"):
            self._reply(200, "température 25°C")
        elif self.path.startswith("/latin"):
            self._reply(200, "café", "text/plain; charset=iso-8859-1", "iso-8859-1")
        else:
            self._reply(200, f"echo {self.path}")

    def do_POST(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length)
        self.server.requests.append(("POST", self.path, dict(self.headers), body))
        if self.path.startswith("/fail"):
            self._reply(500, "boom")
        else:
            self._reply(201, "created")


@pytest.fixture
def http_server():
    """Run a local HTTP server on an ephemeral port."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _CommandHandler)
    server.requests = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)
