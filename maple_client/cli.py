"""CLI entry point for maple-client.

    maple-client scan [--port 17756] [--timeout 5]
    maple-client get <host> <path> [--port 5417] [-p key=value ...]
    maple-client post <host> <path> [--port 5417] [--data TEXT]
    maple-client send <host[:port]> <command>

Every command prints one JSON object:
    {"success": bool, "command": str, "data": ..., "message": str}
"""

import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import Any, Optional

import click

from .client import MapleClient
from .config import MapleConfig, load_config
from .discovery.models import HostRecord
from .exceptions import MapleError

DEFAULT_SERVER_PORT = 5417


def output(success: bool, command: str, data: Any = None, message: str = "") -> None:
    """Print a result as a single JSON line."""
    click.echo(json.dumps({
        "success": success,
        "command": command,
        "data": data,
        "message": message,
    }, ensure_ascii=False))


def _load(ctx: click.Context) -> MapleConfig:
    try:
        return load_config(ctx.obj.get("config_path"))
    except (FileNotFoundError, MapleError) as e:
        output(False, ctx.info_name or "", message=str(e))
        sys.exit(1)


def _parse_params(values: tuple[str, ...]) -> list[tuple[str, str]]:
    params = []
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="-p")
        params.append((key, value))
    return params


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="YAML config file.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], verbose: bool):
    """Discover Maple servers on the LAN and send them commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.command()
@click.option("--port", type=int, default=None, help="UDP port to listen on.")
@click.option("--timeout", type=float, default=None, help="Listening window in seconds.")
@click.pass_context
def scan(ctx: click.Context, port: Optional[int], timeout: Optional[float]):
    """Listen for server advertisements."""
    config = _load(ctx)
    overrides = {
        key: value
        for key, value in (("listen_port", port), ("listen_timeout", timeout))
        if value is not None
    }
    try:
        config = replace(config, **overrides)
    except MapleError as e:
        output(False, "scan", message=str(e))
        sys.exit(1)

    client = MapleClient(config)

    def announce(record: HostRecord) -> None:
        click.echo(f"  Found: {record}", err=True)

    client.on_server_found(announce)
    click.echo(
        f"Scanning for servers on UDP port {config.listen_port} ({config.listen_timeout}s)...",
        err=True,
    )

    try:
        servers = asyncio.run(client.start_scanning_for_advertising_servers())
    except MapleError as e:
        output(False, "scan", message=str(e))
        sys.exit(1)

    output(
        True,
        "scan",
        data=[s.to_dict() for s in servers],
        message=f"Found {len(servers)} server(s)",
    )


@main.command()
@click.argument("host")
@click.argument("path")
@click.option("--port", type=int, default=DEFAULT_SERVER_PORT, show_default=True)
@click.option("-p", "--param", "params", multiple=True, help="Query parameter key=value.")
@click.pass_context
def get(ctx: click.Context, host: str, path: str, port: int, params: tuple[str, ...]):
    """GET a path from a server and print the body.

    An empty reply counts as a failure, even with a 2xx status.
    """
    client = MapleClient(_load(ctx))
    body = client.get(host, port, path, _parse_params(params))
    if body == "":
        output(False, "get", message=f"No response from {host}:{port}/{path}")
        sys.exit(1)
    output(True, "get", data=body)


@main.command()
@click.argument("host")
@click.argument("path")
@click.option("--port", type=int, default=DEFAULT_SERVER_PORT, show_default=True)
@click.option("--data", default="", help="Request body.")
@click.option("--content-type", default="text/plain", show_default=True)
@click.pass_context
def post(ctx: click.Context, host: str, path: str, port: int, data: str, content_type: str):
    """POST a command to a server."""
    client = MapleClient(_load(ctx))
    if not client.post(host, port, path, data, content_type):
        output(False, "post", message=f"POST to {host}:{port}/{path} failed")
        sys.exit(1)
    output(True, "post")


@main.command()
@click.argument("host_address")
@click.argument("command")
@click.pass_context
def send(ctx: click.Context, host_address: str, command: str):
    """POST an empty command to HOST_ADDRESS (host or host:port)."""
    client = MapleClient(_load(ctx))
    if not client.send_command(command, host_address):
        output(False, "send", message=f"Command '{command}' to {host_address} failed")
        sys.exit(1)
    output(True, "send")


if __name__ == "__main__":
    main()
