import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto

from aiohttp import ClientError, ClientSession, FormData

from .exceptions import NotAuthenticated, TransportError


_L = logging.getLogger(__name__)

SESSION_COOKIE = "SID"


class SessionState(Enum):
    ANONYMOUS = auto()
    AUTHENTICATED = auto()
    LOGGED_OUT = auto()


@dataclass(frozen=True)
class FileField:
    name: str
    filename: str
    content: bytes
    content_type: str = "application/x-bittorrent"


@dataclass(frozen=True)
class RawResponse:
    status: int
    body: bytes
    reason: str | None = None
    content_type: str = ""
    cookies: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport:
    """
    Sends raw requests to the daemon with the session cookie attached.
    Network failures become TransportError, HTTP statuses are returned as-is.
    """

    def __init__(self, base_url: str, *, session: ClientSession) -> None:
        self._base_url = base_url.rstrip("/")
        self._curl = session
        self._sid: str | None = None
        self._state = SessionState.ANONYMOUS

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def state(self) -> SessionState:
        return self._state

    def require_session(self) -> None:
        if self._state == SessionState.LOGGED_OUT:
            raise NotAuthenticated("the session was logged out, login again")

    def authenticate(self, sid: str | None) -> None:
        # daemons with authentication bypass may not issue a cookie
        self._sid = sid
        self._state = SessionState.AUTHENTICATED

    def invalidate(self) -> None:
        self._sid = None
        self._state = SessionState.LOGGED_OUT

    async def send(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, str] | None = None,
        form: Mapping[str, str] | None = None,
        files: Sequence[FileField] | None = None,
        multipart: bool = False,
    ) -> RawResponse:
        url = self._base_url + path
        headers = self._create_headers()
        data = _create_body(form, files, multipart)
        _L.debug(f"{method} {path}")
        try:
            async with self._curl.request(
                method, url, params=query, data=data, headers=headers
            ) as response:
                body = await response.read()
                return RawResponse(
                    status=response.status,
                    body=body,
                    reason=response.reason,
                    content_type=response.content_type,
                    cookies={k: v.value for k, v in response.cookies.items()},
                )
        except (ClientError, TimeoutError) as e:
            _L.error(f"{method} {path} failed: {e!r}")
            raise TransportError(f"{method} {path}: {e!r}") from e

    def _create_headers(self) -> dict[str, str]:
        headers = {"Referer": self._base_url}
        if self._sid:
            headers["Cookie"] = f"{SESSION_COOKIE}={self._sid}"
        return headers


def _create_body(
    form: Mapping[str, str] | None,
    files: Sequence[FileField] | None,
    multipart: bool,
) -> FormData | dict[str, str] | None:
    if not multipart:
        return dict(form) if form else None
    data = FormData(default_to_multipart=True)
    for key, value in (form or {}).items():
        data.add_field(key, value)
    for file in files or ():
        data.add_field(
            file.name,
            file.content,
            filename=file.filename,
            content_type=file.content_type,
        )
    return data
