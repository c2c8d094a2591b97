import json

import pytest

from qbremote.client import create_client
from qbremote.exceptions import LoginFailed
from qbremote.main import Probe
from qbremote.settings import ServerData, load_from_path
from qbremote.types import ApiGeneration, ClientState

from .conftest import PASSWORD, USERNAME, FakeDaemon


def test_load_from_path(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "server:\n"
        "  url: http://localhost:8080\n"
        "  username: admin\n"
        "  password: secret\n"
        "  timeout: 30\n"
        "log_path: /tmp/qbremote.log\n",
        encoding="utf-8",
    )
    data = load_from_path(str(path))
    assert data.server.url == "http://localhost:8080"
    assert data.server.username == "admin"
    assert data.server.timeout == 30.0
    assert data.log_path == "/tmp/qbremote.log"


def test_load_minimal(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("server:\n  url: http://localhost:8080\n", encoding="utf-8")
    data = load_from_path(str(path))
    assert data.server.username is None
    assert data.log_path is None


async def test_create_client_logs_in(v1_daemon: FakeDaemon):
    server = ServerData(url=v1_daemon.url, username=USERNAME, password=PASSWORD)
    async with create_client(server) as client:
        capability = await client.ensure_detected()
        assert capability.generation == ApiGeneration.V1
        assert client.state == ClientState.READY
    assert v1_daemon.count("/login") == 1


async def test_create_client_reports_bad_credentials(v2_daemon: FakeDaemon):
    server = ServerData(url=v2_daemon.url, username=USERNAME, password="wrong")
    with pytest.raises(LoginFailed):
        async with create_client(server):
            pass


async def test_report_command(tmp_path, capsys, v2_daemon: FakeDaemon):
    v2_daemon.reply("GET", "/api/v2/app/version", "v4.6.0")
    path = tmp_path / "settings.yaml"
    path.write_text(
        f"server:\n  url: {v2_daemon.url}\n"
        f"  username: {USERNAME}\n  password: {PASSWORD}\n",
        encoding="utf-8",
    )

    command = Probe(["qbremote", "-s", str(path)])
    assert await command() == 0

    last_line = capsys.readouterr().out.strip().splitlines()[-1]
    output = json.loads(last_line)
    assert output == {
        "generation": "V2",
        "version": "2.8.3",
        "qbittorrent": "v4.6.0",
    }


async def test_report_command_failure(tmp_path, v2_daemon: FakeDaemon):
    path = tmp_path / "settings.yaml"
    path.write_text(
        f"server:\n  url: {v2_daemon.url}\n  username: {USERNAME}\n  password: x\n",
        encoding="utf-8",
    )
    command = Probe(["qbremote", "-s", str(path)])
    assert await command() == 1
