import asyncio
import logging
from collections.abc import Awaitable, Callable

from .codec import decode_int, decode_text
from .endpoints import Operation, resolve
from .exceptions import (
    DecodeError,
    DetectionFailed,
    NotAuthenticated,
    QbittorrentError,
    RequestFailed,
)
from .transport import RawResponse, Transport
from .types import ApiGeneration, ApiVersion, ServerCapability


_L = logging.getLogger(__name__)

# dotted API versions at or above this belong to the /api/v2 surface
V2_THRESHOLD = ApiVersion(2, 0, 0)


class SingleFlight[T]:
    """
    Computes a value at most once at a time and keeps it after success.

    Concurrent callers share one in-flight computation. Each caller waits
    through asyncio.shield, so cancelling a caller leaves the computation
    running for the others. A failure is handed to every waiting caller and
    then forgotten: the next get() starts over.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._task: asyncio.Task[T] | None = None
        self._value: T | None = None
        self._done = False

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def is_done(self) -> bool:
        return self._done

    @property
    def is_running(self) -> bool:
        return self._task is not None

    async def get(self) -> T:
        if self._done:
            return self._value  # type: ignore[return-value]
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            self._task.add_done_callback(_consume_exception)
        return await asyncio.shield(self._task)

    async def _run(self) -> T:
        try:
            value = await self._factory()
        except BaseException:
            self._task = None
            raise
        self._value = value
        self._done = True
        self._task = None
        return value


def _consume_exception(task: asyncio.Task) -> None:
    # every waiter may have been cancelled, do not warn about it
    if not task.cancelled():
        task.exception()


def classify(version: ApiVersion) -> ServerCapability:
    if version >= V2_THRESHOLD:
        return ServerCapability(ApiGeneration.V2, version)
    return ServerCapability(ApiGeneration.V1, version)


def parse_v2_version(body: bytes) -> ApiVersion:
    text = decode_text(body)
    try:
        return ApiVersion.parse(text)
    except ValueError as e:
        raise DecodeError(f"malformed API version: {text!r}") from e


def parse_v1_level(body: bytes) -> ApiVersion:
    level = decode_int(body)
    if level < 0:
        raise DecodeError(f"malformed API level: {level}")
    return ApiVersion(1, level, 0)


class CapabilityDetector:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._flight = SingleFlight(self._detect)

    @property
    def capability(self) -> ServerCapability | None:
        return self._flight.value

    @property
    def is_detecting(self) -> bool:
        return self._flight.is_running

    async def ensure_detected(self) -> ServerCapability:
        return await self._flight.get()

    async def _detect(self) -> ServerCapability:
        try:
            version = await self._probe()
        except NotAuthenticated:
            _L.error("capability detection refused, login required")
            raise
        except QbittorrentError as e:
            _L.error(f"capability detection failed: {e}")
            raise DetectionFailed(f"cannot detect API version: {e}") from e
        capability = classify(version)
        _L.info(f"detected {capability}")
        return capability

    async def _probe(self) -> ApiVersion:
        spec = resolve(Operation.GET_API_VERSION, ApiGeneration.V2)
        response = await self._transport.send(spec.method, spec.path)
        _check_session(response)
        if response.ok:
            return parse_v2_version(response.body)
        if response.status != 404:
            raise RequestFailed(response.status, response.reason)

        # no /api/v2 surface, ask the legacy one
        spec = resolve(Operation.GET_API_VERSION, ApiGeneration.V1)
        response = await self._transport.send(spec.method, spec.path)
        _check_session(response)
        if not response.ok:
            raise RequestFailed(response.status, response.reason)
        return parse_v1_level(response.body)


def _check_session(response: RawResponse) -> None:
    if response.status == 403:
        raise NotAuthenticated("the version query was refused, login required")
