"""A fake qBittorrent daemon, in legacy or current API flavour."""

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any

import pytest
from aiohttp import ClientSession, DummyCookieJar
from aiohttp.test_utils import TestServer
from aiohttp.web import (
    AppKey,
    Application,
    FileField,
    HTTPForbidden,
    HTTPNotFound,
    Request,
    Response,
    View,
)

from qbremote.client import QbittorrentClient
from qbremote.types import ApiGeneration


USERNAME = "admin"
PASSWORD = "adminadmin"


@dataclass
class Recorded:
    method: str
    path: str
    query: dict[str, str] = field(default_factory=dict)
    form: dict[str, str] = field(default_factory=dict)
    files: list[tuple[str, str, bytes]] = field(default_factory=list)
    cookie: str | None = None


@dataclass
class Reply:
    body: str
    status: int = 200
    content_type: str = "text/plain"


class FakeDaemon:
    def __init__(self, generation: ApiGeneration, api_version: str) -> None:
        self.generation = generation
        self.api_version = api_version
        self.url = ""
        self.sid = "fake-session-id"
        self.requests: list[Recorded] = []
        # set to hold the version query until released
        self.version_gate: asyncio.Event | None = None
        # set to hold the next login until released
        self.login_gate: asyncio.Event | None = None
        self._replies: dict[tuple[str, str], Reply] = {}

    @property
    def version_path(self) -> str:
        if self.generation == ApiGeneration.V2:
            return "/api/v2/app/webapiVersion"
        return "/version/api"

    def reply(self, method: str, path: str, body: str, status: int = 200) -> None:
        self._replies[(method, path)] = Reply(body, status)

    def reply_json(self, method: str, path: str, value: Any) -> None:
        self._replies[(method, path)] = Reply(
            json.dumps(value), content_type="application/json"
        )

    def forget(self, method: str, path: str) -> None:
        self._replies.pop((method, path), None)

    def find(self, path: str) -> list[Recorded]:
        return [_ for _ in self.requests if _.path == path]

    def count(self, path: str) -> int:
        return len(self.find(path))

    def create_app(self) -> Application:
        app = Application()
        app[DAEMON] = self
        app.router.add_view(r"/{tail:.*}", DaemonView)
        return app

    async def handle(self, request: Request) -> Response:
        recorded = await _record(request)
        self.requests.append(recorded)
        path = recorded.path

        is_v2_path = path.startswith("/api/v2/")
        if is_v2_path != (self.generation == ApiGeneration.V2):
            raise HTTPNotFound()

        if path in ("/api/v2/auth/login", "/login"):
            gate, self.login_gate = self.login_gate, None
            if gate is not None:
                await gate.wait()
            return self._login(recorded)

        is_public = path.startswith("/version/")
        if not is_public and recorded.cookie != self.sid:
            raise HTTPForbidden()

        if path == self.version_path and self.version_gate is not None:
            await self.version_gate.wait()

        reply = self._replies.get((recorded.method, path))
        if reply is not None:
            return Response(
                status=reply.status, text=reply.body, content_type=reply.content_type
            )

        if path == self.version_path:
            return Response(text=self.api_version)
        return Response(text="")

    def _login(self, recorded: Recorded) -> Response:
        username = recorded.form.get("username")
        password = recorded.form.get("password")
        if username != USERNAME or password != PASSWORD:
            return Response(text="Fails.")
        response = Response(text="Ok.")
        response.set_cookie("SID", self.sid)
        return response


DAEMON = AppKey("DAEMON", FakeDaemon)


class DaemonView(View):
    async def get(self):
        return await self.request.app[DAEMON].handle(self.request)

    async def post(self):
        return await self.request.app[DAEMON].handle(self.request)


async def _record(request: Request) -> Recorded:
    recorded = Recorded(
        method=request.method,
        path=request.path,
        query=dict(request.query),
        cookie=request.cookies.get("SID"),
    )
    if request.method != "POST":
        return recorded
    data = await request.post()
    for key, value in data.items():
        if isinstance(value, FileField):
            recorded.files.append((key, value.filename, value.file.read()))
        else:
            recorded.form[key] = str(value)
    return recorded


type StartDaemon = Callable[[ApiGeneration, str], Awaitable[FakeDaemon]]


@pytest.fixture
async def start_daemon() -> AsyncIterator[StartDaemon]:
    async with AsyncExitStack() as stack:

        async def start(generation: ApiGeneration, api_version: str) -> FakeDaemon:
            daemon = FakeDaemon(generation, api_version)
            server = await stack.enter_async_context(TestServer(daemon.create_app()))
            daemon.url = str(server.make_url("/"))
            return daemon

        yield start


@pytest.fixture
async def session() -> AsyncIterator[ClientSession]:
    async with ClientSession(cookie_jar=DummyCookieJar()) as session:
        yield session


@pytest.fixture
async def v1_daemon(start_daemon: StartDaemon) -> FakeDaemon:
    return await start_daemon(ApiGeneration.V1, "18")


@pytest.fixture
async def v2_daemon(start_daemon: StartDaemon) -> FakeDaemon:
    return await start_daemon(ApiGeneration.V2, "2.8.3")


@pytest.fixture
async def v1_client(v1_daemon: FakeDaemon, session: ClientSession) -> QbittorrentClient:
    client = QbittorrentClient(v1_daemon.url, session=session)
    await client.login(USERNAME, PASSWORD)
    return client


@pytest.fixture
async def v2_client(v2_daemon: FakeDaemon, session: ClientSession) -> QbittorrentClient:
    client = QbittorrentClient(v2_daemon.url, session=session)
    await client.login(USERNAME, PASSWORD)
    return client
