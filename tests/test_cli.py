"""Tests for the maple-client command line."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from maple_client.cli import main
from maple_client.discovery.models import HostRecord, Registry
from maple_client.exceptions import BindError


def _last_json(output: str) -> dict:
    return json.loads(output.strip().splitlines()[-1])


def _registry(*records: HostRecord) -> Registry:
    registry = Registry()
    for record in records:
        registry.add(record)
    return registry


def test_scan_reports_servers():
    registry = _registry(HostRecord("Server1", "10.0.0.5"), HostRecord("Lamp", "10.0.0.6"))
    with patch(
        "maple_client.cli.MapleClient.start_scanning_for_advertising_servers",
        new=AsyncMock(return_value=registry),
    ):
        result = CliRunner().invoke(main, ["scan", "--timeout", "0.1", "--port", "18001"])

    assert result.exit_code == 0, result.output
    payload = _last_json(result.output)
    assert payload["success"] is True
    assert payload["command"] == "scan"
    assert payload["data"] == [
        {"name": "Server1", "address": "10.0.0.5"},
        {"name": "Lamp", "address": "10.0.0.6"},
    ]


def test_scan_bind_failure():
    with patch(
        "maple_client.cli.MapleClient.start_scanning_for_advertising_servers",
        new=AsyncMock(side_effect=BindError("0.0.0.0", 17756, "Address already in use")),
    ):
        result = CliRunner().invoke(main, ["scan"])

    assert result.exit_code == 1
    payload = _last_json(result.output)
    assert payload["success"] is False
    assert "17756" in payload["message"]


def test_get_passes_params_in_order():
    with patch("maple_client.cli.MapleClient.get", return_value="42") as get:
        result = CliRunner().invoke(
            main, ["get", "10.0.0.5", "temp", "--port", "8080", "-p", "unit=c", "-p", "avg=1"]
        )

    assert result.exit_code == 0, result.output
    get.assert_called_once_with("10.0.0.5", 8080, "temp", [("unit", "c"), ("avg", "1")])
    assert _last_json(result.output)["data"] == "42"


def test_get_rejects_bad_param():
    result = CliRunner().invoke(main, ["get", "10.0.0.5", "temp", "-p", "novalue"])
    assert result.exit_code != 0
    assert "key=value" in result.output


def test_get_empty_body_is_failure():
    with patch("maple_client.cli.MapleClient.get", return_value=""):
        result = CliRunner().invoke(main, ["get", "10.0.0.5", "temp"])

    assert result.exit_code == 1
    assert _last_json(result.output)["success"] is False


def test_post_failure_exit_code():
    with patch("maple_client.cli.MapleClient.post", return_value=False) as post:
        result = CliRunner().invoke(main, ["post", "10.0.0.5", "led/on", "--data", "1"])

    assert result.exit_code == 1
    post.assert_called_once_with("10.0.0.5", 5417, "led/on", "1", "text/plain")


def test_send_success():
    with patch("maple_client.cli.MapleClient.send_command", return_value=True) as send:
        result = CliRunner().invoke(main, ["send", "10.0.0.5:5417", "reboot"])

    assert result.exit_code == 0, result.output
    send.assert_called_once_with("reboot", "10.0.0.5:5417")
    assert _last_json(result.output) == {
        "success": True, "command": "send", "data": None, "message": "",
    }


def test_missing_config_file():
    result = CliRunner().invoke(main, ["--config", "/nonexistent/maple.yaml", "send", "h", "c"])
    assert result.exit_code == 1
    assert _last_json(result.output)["success"] is False


def test_scan_rejects_invalid_overrides():
    with patch(
        "maple_client.cli.MapleClient.start_scanning_for_advertising_servers",
        new=AsyncMock(),
    ) as scan:
        negative = CliRunner().invoke(main, ["scan", "--timeout=-1"])
        out_of_range = CliRunner().invoke(main, ["scan", "--port", "70000"])

    for result in (negative, out_of_range):
        assert result.exit_code == 1
        assert _last_json(result.output)["success"] is False
    scan.assert_not_called()


def test_get_help_mentions_empty_reply():
    result = CliRunner().invoke(main, ["get", "--help"])
    assert result.exit_code == 0
    assert "empty reply counts as a failure" in " ".join(result.output.split())
