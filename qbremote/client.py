import asyncio
import json
import logging
from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from contextlib import AsyncExitStack, asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import quote

from aiohttp import ClientSession, ClientTimeout, DummyCookieJar

from .codec import (
    JsonDumps,
    JsonLoads,
    decode_int,
    decode_json,
    decode_limits,
    decode_text,
    from_wire,
    list_from_wire,
)
from .detector import CapabilityDetector
from .endpoints import EndpointSpec, Operation, Payload, requirement, resolve
from .exceptions import (
    ApiNotSupported,
    DecodeError,
    EmptyCollection,
    InvalidTorrentFile,
    LoginFailed,
    NotAuthenticated,
    RequestFailed,
)
from .hashes import validate, validate_names, validate_set
from .models import (
    CATEGORY_RENAMES,
    TORRENT_INFO_UNSET,
    TORRENT_PROPERTIES_UNSET,
    AddTorrentOptions,
    Category,
    GlobalTransferInfo,
    PartialData,
    PeerLogEntry,
    PeerPartialData,
    RssAutoDownloadingRule,
    RssFolder,
    TorrentContent,
    TorrentContentPriority,
    TorrentInfo,
    TorrentListQuery,
    TorrentLogEntry,
    TorrentLogSeverity,
    TorrentPieceState,
    TorrentPriorityChange,
    TorrentProperties,
    TorrentTracker,
)
from .settings import ServerData
from .transport import SESSION_COOKIE, FileField, RawResponse, SessionState, Transport
from .types import ApiGeneration, ApiVersion, BulkSelector, ClientState, ServerCapability


_L = logging.getLogger(__name__)


type Hashes = Iterable[str] | None


_PRIORITY_OPERATIONS = {
    TorrentPriorityChange.MINIMAL: (
        Operation.PRIORITY_MINIMAL,
        Operation.PRIORITY_MINIMAL_ALL,
    ),
    TorrentPriorityChange.DECREASE: (
        Operation.PRIORITY_DECREASE,
        Operation.PRIORITY_DECREASE_ALL,
    ),
    TorrentPriorityChange.INCREASE: (
        Operation.PRIORITY_INCREASE,
        Operation.PRIORITY_INCREASE_ALL,
    ),
    TorrentPriorityChange.MAXIMAL: (
        Operation.PRIORITY_MAXIMAL,
        Operation.PRIORITY_MAXIMAL_ALL,
    ),
}


@asynccontextmanager
async def create_client(
    server: ServerData, *, session: ClientSession | None = None
) -> AsyncIterator["QbittorrentClient"]:
    """
    Builds a client from settings and logs in when credentials are given.
    A private ClientSession is created and closed when none is passed.
    """
    async with AsyncExitStack() as stack:
        if session is None:
            timeout = ClientTimeout(total=server.timeout)
            session = await stack.enter_async_context(
                ClientSession(cookie_jar=DummyCookieJar(), timeout=timeout)
            )
        client = QbittorrentClient(server.url, session=session)
        if server.username is not None:
            await client.login(server.username, server.password or "")
        yield client


class QbittorrentClient:
    """
    Remote control for a qBittorrent daemon speaking either API generation.

    The generation is detected once, on the first operation that needs it,
    and every call is routed through the endpoint table for that generation.
    Operations the daemon cannot serve fail with ApiNotSupported before any
    request is made.
    """

    def __init__(
        self,
        url: str,
        *,
        session: ClientSession,
        json_loads: JsonLoads = json.loads,
        json_dumps: JsonDumps = json.dumps,
    ) -> None:
        self._transport = Transport(url, session=session)
        self._detector = CapabilityDetector(self._transport)
        self._loads = json_loads
        self._dumps = json_dumps
        # number of login calls in flight
        self._authenticating = 0

    @property
    def state(self) -> ClientState:
        if self._transport.state == SessionState.LOGGED_OUT:
            return ClientState.LOGGED_OUT
        if self._detector.capability is not None:
            return ClientState.READY
        if self._detector.is_detecting:
            return ClientState.DETECTING
        if self._authenticating:
            return ClientState.AUTHENTICATING
        return ClientState.UNINITIALIZED

    @property
    def capability(self) -> ServerCapability | None:
        return self._detector.capability

    async def ensure_detected(self) -> ServerCapability:
        self._transport.require_session()
        return await self._detector.ensure_detected()

    # authentication

    async def login(self, username: str, password: str) -> None:
        """
        Logs in and keeps the session cookie. Safe to call again.

        Before the API generation is known the v2 path is tried first and the
        legacy one only when the daemon does not know it.
        """
        fields = {"username": username, "password": password}
        capability = self._detector.capability
        if capability is not None:
            generations = [capability.generation]
        else:
            generations = [ApiGeneration.V2, ApiGeneration.V1]

        self._authenticating += 1
        try:
            for generation in generations:
                spec = resolve(Operation.LOGIN, generation)
                path, form = _build(spec, fields)
                response = await self._transport.send(spec.method, path, form=form)
                if response.status != 404:
                    break

            if response.status == 403:
                _L.error("login refused, the client address is banned")
                raise LoginFailed("too many failed attempts, address banned")
            if not response.ok:
                raise RequestFailed(response.status, response.reason)
            if decode_text(response.body).strip() != "Ok.":
                _L.error(f"login failed for {username}")
                raise LoginFailed("invalid username or password")

            self._transport.authenticate(response.cookies.get(SESSION_COOKIE))
            _L.info(f"logged in as {username}")
        finally:
            self._authenticating -= 1

    async def logout(self) -> None:
        if self._transport.state == SessionState.LOGGED_OUT:
            return
        await self._call(Operation.LOGOUT)
        self._transport.invalidate()
        _L.info("logged out")

    # versions

    async def get_api_version(self) -> ApiVersion:
        capability = await self.ensure_detected()
        return capability.version

    async def get_min_api_version(self) -> int:
        response = await self._call(Operation.GET_MIN_API_VERSION)
        return decode_int(response.body)

    async def get_qbittorrent_version(self) -> str:
        response = await self._call(Operation.GET_QBITTORRENT_VERSION)
        return decode_text(response.body).strip()

    async def get_default_save_path(self) -> str:
        response = await self._call(Operation.GET_DEFAULT_SAVE_PATH)
        return decode_text(response.body)

    # queries

    async def get_torrent_list(
        self, query: TorrentListQuery | None = None
    ) -> list[TorrentInfo]:
        query = query or TorrentListQuery()
        response = await self._call(Operation.GET_TORRENT_LIST, query.to_fields())
        raw = self._decode(response)
        return list_from_wire(TorrentInfo, raw, negative=TORRENT_INFO_UNSET)

    async def get_torrent_properties(self, hash_: str) -> TorrentProperties:
        response = await self._call(
            Operation.GET_TORRENT_PROPERTIES, {"hash": validate(hash_)}
        )
        raw = self._decode(response)
        return from_wire(TorrentProperties, raw, negative=TORRENT_PROPERTIES_UNSET)

    async def get_torrent_contents(self, hash_: str) -> list[TorrentContent]:
        response = await self._call(
            Operation.GET_TORRENT_CONTENTS, {"hash": validate(hash_)}
        )
        return list_from_wire(TorrentContent, self._decode(response))

    async def get_torrent_trackers(self, hash_: str) -> list[TorrentTracker]:
        response = await self._call(
            Operation.GET_TORRENT_TRACKERS, {"hash": validate(hash_)}
        )
        return list_from_wire(TorrentTracker, self._decode(response))

    async def get_torrent_web_seeds(self, hash_: str) -> list[str]:
        response = await self._call(
            Operation.GET_TORRENT_WEB_SEEDS, {"hash": validate(hash_)}
        )
        raw = self._decode(response)
        if not isinstance(raw, list):
            raise DecodeError("expected a list of web seeds")
        try:
            return [_["url"] for _ in raw]
        except (KeyError, TypeError) as e:
            raise DecodeError(f"malformed web seed: {e}") from e

    async def get_torrent_piece_states(self, hash_: str) -> list[TorrentPieceState]:
        response = await self._call(
            Operation.GET_TORRENT_PIECE_STATES, {"hash": validate(hash_)}
        )
        raw = self._decode(response)
        if not isinstance(raw, list):
            raise DecodeError("expected a list of piece states")
        try:
            return [TorrentPieceState(_) for _ in raw]
        except ValueError as e:
            raise DecodeError(f"unknown piece state: {e}") from e

    async def get_torrent_piece_hashes(self, hash_: str) -> list[str]:
        response = await self._call(
            Operation.GET_TORRENT_PIECE_HASHES, {"hash": validate(hash_)}
        )
        raw = self._decode(response)
        if not isinstance(raw, list) or not all(isinstance(_, str) for _ in raw):
            raise DecodeError("expected a list of piece hashes")
        return raw

    async def get_global_transfer_info(self) -> GlobalTransferInfo:
        response = await self._call(Operation.GET_GLOBAL_TRANSFER_INFO)
        return from_wire(GlobalTransferInfo, self._decode(response))

    async def get_partial_data(self, response_id: int = 0) -> PartialData:
        response = await self._call(Operation.GET_PARTIAL_DATA, {"rid": response_id})
        return from_wire(PartialData, self._decode(response))

    async def get_peer_partial_data(
        self, hash_: str, response_id: int = 0
    ) -> PeerPartialData:
        response = await self._call(
            Operation.GET_PEER_PARTIAL_DATA,
            {"hash": validate(hash_), "rid": response_id},
        )
        return from_wire(PeerPartialData, self._decode(response))

    async def get_log(
        self,
        severity: TorrentLogSeverity = TorrentLogSeverity.ALL,
        after_id: int = -1,
    ) -> list[TorrentLogEntry]:
        response = await self._call(
            Operation.GET_LOG,
            {
                "normal": TorrentLogSeverity.NORMAL in severity,
                "info": TorrentLogSeverity.INFO in severity,
                "warning": TorrentLogSeverity.WARNING in severity,
                "critical": TorrentLogSeverity.CRITICAL in severity,
                "last_known_id": after_id,
            },
        )
        return list_from_wire(TorrentLogEntry, self._decode(response))

    async def get_peer_log(self, after_id: int = -1) -> list[PeerLogEntry]:
        response = await self._call(
            Operation.GET_PEER_LOG, {"last_known_id": after_id}
        )
        return list_from_wire(PeerLogEntry, self._decode(response))

    # adding torrents

    async def add_torrent_files(
        self,
        paths: Iterable[str | Path],
        options: AddTorrentOptions | None = None,
    ) -> None:
        paths = [Path(_) for _ in paths]
        if not paths:
            raise EmptyCollection("torrent files")
        files = [(_.name, await _read_torrent(_)) for _ in paths]
        fields = (options or AddTorrentOptions()).to_fields()
        await self._call(Operation.ADD_TORRENT_FILES, fields, files=files)

    async def add_torrent_urls(
        self,
        urls: Iterable[str],
        options: AddTorrentOptions | None = None,
    ) -> None:
        fields = (options or AddTorrentOptions()).to_fields()
        fields["urls"] = validate_names(urls, "urls")
        await self._call(Operation.ADD_TORRENT_URLS, fields)

    # bulk commands, hashes=None means every torrent

    async def pause(self, hashes: Hashes = None) -> None:
        await self._bulk(Operation.PAUSE, Operation.PAUSE_ALL, hashes)

    async def resume(self, hashes: Hashes = None) -> None:
        await self._bulk(Operation.RESUME, Operation.RESUME_ALL, hashes)

    async def recheck(self, hashes: Hashes = None) -> None:
        await self._bulk(Operation.RECHECK, Operation.RECHECK_ALL, hashes)

    async def reannounce(self, hashes: Hashes = None) -> None:
        await self._bulk(Operation.REANNOUNCE, Operation.REANNOUNCE_ALL, hashes)

    async def delete(self, hashes: Hashes = None, *, delete_data: bool = False) -> None:
        if delete_data:
            await self._bulk(
                Operation.DELETE_WITH_DATA, Operation.DELETE_ALL_WITH_DATA, hashes
            )
        else:
            await self._bulk(Operation.DELETE, Operation.DELETE_ALL, hashes)

    async def change_priority(
        self, change: TorrentPriorityChange, hashes: Hashes = None
    ) -> None:
        try:
            operation, all_operation = _PRIORITY_OPERATIONS[change]
        except KeyError:
            raise ValueError(f"invalid priority change: {change!r}") from None
        await self._bulk(operation, all_operation, hashes)

    async def set_file_priority(
        self, hash_: str, file_id: int, priority: TorrentContentPriority
    ) -> None:
        hash_ = validate(hash_)
        if file_id < 0:
            raise ValueError(f"invalid file id: {file_id}")
        priority = TorrentContentPriority(priority)
        await self._call(
            Operation.SET_FILE_PRIORITY,
            {"hash": hash_, "id": file_id, "priority": priority},
        )

    # speed limits

    async def get_torrent_download_limit(
        self, hashes: Iterable[str]
    ) -> dict[str, int | None]:
        selector = validate_set(hashes)
        response = await self._call(
            Operation.GET_TORRENT_DOWNLOAD_LIMIT, {"hashes": selector}
        )
        return decode_limits(self._decode(response))

    async def get_torrent_upload_limit(
        self, hashes: Iterable[str]
    ) -> dict[str, int | None]:
        selector = validate_set(hashes)
        response = await self._call(
            Operation.GET_TORRENT_UPLOAD_LIMIT, {"hashes": selector}
        )
        return decode_limits(self._decode(response))

    async def set_torrent_download_limit(self, limit: int, hashes: Hashes = None) -> None:
        _check_limit(limit)
        await self._bulk(
            Operation.SET_TORRENT_DOWNLOAD_LIMIT,
            Operation.SET_TORRENT_DOWNLOAD_LIMIT_ALL,
            hashes,
            limit=limit,
        )

    async def set_torrent_upload_limit(self, limit: int, hashes: Hashes = None) -> None:
        _check_limit(limit)
        await self._bulk(
            Operation.SET_TORRENT_UPLOAD_LIMIT,
            Operation.SET_TORRENT_UPLOAD_LIMIT_ALL,
            hashes,
            limit=limit,
        )

    async def get_global_download_limit(self) -> int:
        response = await self._call(Operation.GET_GLOBAL_DOWNLOAD_LIMIT)
        return decode_int(response.body)

    async def set_global_download_limit(self, limit: int) -> None:
        _check_limit(limit)
        await self._call(Operation.SET_GLOBAL_DOWNLOAD_LIMIT, {"limit": limit})

    async def get_global_upload_limit(self) -> int:
        response = await self._call(Operation.GET_GLOBAL_UPLOAD_LIMIT)
        return decode_int(response.body)

    async def set_global_upload_limit(self, limit: int) -> None:
        _check_limit(limit)
        await self._call(Operation.SET_GLOBAL_UPLOAD_LIMIT, {"limit": limit})

    async def get_alternative_speed_limits_enabled(self) -> bool:
        response = await self._call(Operation.GET_ALTERNATIVE_SPEED_LIMITS_ENABLED)
        return decode_text(response.body).strip() == "1"

    async def toggle_alternative_speed_limits(self) -> None:
        await self._call(Operation.TOGGLE_ALTERNATIVE_SPEED_LIMITS)

    # location, name, trackers

    async def set_location(self, location: str, hashes: Hashes = None) -> None:
        if not location:
            raise ValueError("the location cannot be empty")
        await self._bulk(
            Operation.SET_LOCATION, Operation.SET_LOCATION_ALL, hashes, location=location
        )

    async def rename(self, hash_: str, name: str) -> None:
        hash_ = validate(hash_)
        if not name or not name.strip():
            raise ValueError("the name cannot be empty")
        await self._call(Operation.RENAME, {"hash": hash_, "name": name})

    async def add_trackers(self, hash_: str, urls: Iterable[str]) -> None:
        hash_ = validate(hash_)
        joined = validate_names(urls, "trackers")
        await self._call(Operation.ADD_TRACKERS, {"hash": hash_, "urls": joined})

    # categories

    async def get_categories(self) -> dict[str, Category]:
        response = await self._call(Operation.GET_CATEGORIES)
        raw = self._decode(response)
        if not isinstance(raw, dict):
            raise DecodeError("expected an object of categories")
        return {
            name: from_wire(Category, value, renames=CATEGORY_RENAMES)
            for name, value in raw.items()
        }

    async def add_category(self, category: str, save_path: str | None = None) -> None:
        if not category or not category.strip():
            raise ValueError("the category cannot be empty")
        if save_path is None:
            await self._call(Operation.ADD_CATEGORY, {"category": category})
        else:
            await self._call(
                Operation.ADD_CATEGORY_WITH_SAVE_PATH,
                {"category": category, "save_path": save_path},
            )

    async def edit_category(self, category: str, save_path: str) -> None:
        if not category or not category.strip():
            raise ValueError("the category cannot be empty")
        await self._call(
            Operation.EDIT_CATEGORY, {"category": category, "save_path": save_path}
        )

    async def delete_categories(self, categories: Iterable[str]) -> None:
        joined = validate_names(categories, "categories")
        await self._call(Operation.DELETE_CATEGORIES, {"categories": joined})

    async def set_torrent_category(self, category: str, hashes: Hashes = None) -> None:
        # an empty category removes the torrents from their category
        if category is None:
            raise ValueError("the category cannot be None")
        await self._bulk(
            Operation.SET_TORRENT_CATEGORY,
            Operation.SET_TORRENT_CATEGORY_ALL,
            hashes,
            category=category,
        )

    # toggles

    async def set_automatic_torrent_management(
        self, enabled: bool, hashes: Hashes = None
    ) -> None:
        await self._bulk(
            Operation.SET_AUTOMATIC_TORRENT_MANAGEMENT,
            Operation.SET_AUTOMATIC_TORRENT_MANAGEMENT_ALL,
            hashes,
            enabled=enabled,
        )

    async def set_force_start(self, enabled: bool, hashes: Hashes = None) -> None:
        await self._bulk(
            Operation.SET_FORCE_START,
            Operation.SET_FORCE_START_ALL,
            hashes,
            enabled=enabled,
        )

    async def set_super_seeding(self, enabled: bool, hashes: Hashes = None) -> None:
        await self._bulk(
            Operation.SET_SUPER_SEEDING,
            Operation.SET_SUPER_SEEDING_ALL,
            hashes,
            enabled=enabled,
        )

    async def toggle_sequential_download(self, hashes: Hashes = None) -> None:
        await self._bulk(
            Operation.TOGGLE_SEQUENTIAL_DOWNLOAD,
            Operation.TOGGLE_SEQUENTIAL_DOWNLOAD_ALL,
            hashes,
        )

    async def toggle_first_last_piece_priority(self, hashes: Hashes = None) -> None:
        await self._bulk(
            Operation.TOGGLE_FIRST_LAST_PIECE_PRIORITY,
            Operation.TOGGLE_FIRST_LAST_PIECE_PRIORITY_ALL,
            hashes,
        )

    # RSS

    async def add_rss_folder(self, path: str) -> None:
        _check_rss_path(path)
        await self._call(Operation.RSS_ADD_FOLDER, {"path": path})

    async def add_rss_feed(self, url: str, path: str = "") -> None:
        if not url:
            raise ValueError("the feed URL cannot be empty")
        await self._call(Operation.RSS_ADD_FEED, {"url": url, "path": path})

    async def delete_rss_item(self, path: str) -> None:
        _check_rss_path(path)
        await self._call(Operation.RSS_REMOVE_ITEM, {"path": path})

    async def move_rss_item(self, path: str, new_path: str) -> None:
        _check_rss_path(path)
        await self._call(
            Operation.RSS_MOVE_ITEM, {"path": path, "new_path": new_path}
        )

    async def get_rss_items(self, with_data: bool = False) -> RssFolder:
        response = await self._call(Operation.RSS_GET_ITEMS, {"with_data": with_data})
        return RssFolder.from_wire(self._decode(response))

    async def set_rss_rule(self, name: str, rule: RssAutoDownloadingRule) -> None:
        if not name:
            raise ValueError("the rule name cannot be empty")
        definition = self._dumps(rule.to_wire())
        await self._call(Operation.RSS_SET_RULE, {"name": name, "rule": definition})

    async def rename_rss_rule(self, name: str, new_name: str) -> None:
        if not name or not new_name:
            raise ValueError("the rule names cannot be empty")
        await self._call(
            Operation.RSS_RENAME_RULE, {"name": name, "new_name": new_name}
        )

    async def delete_rss_rule(self, name: str) -> None:
        if not name:
            raise ValueError("the rule name cannot be empty")
        await self._call(Operation.RSS_REMOVE_RULE, {"name": name})

    async def get_rss_rules(self) -> dict[str, RssAutoDownloadingRule]:
        response = await self._call(Operation.RSS_GET_RULES)
        raw = self._decode(response)
        if not isinstance(raw, dict):
            raise DecodeError("expected an object of RSS rules")
        return {
            name: RssAutoDownloadingRule.from_wire(value)
            for name, value in raw.items()
        }

    # dispatch

    async def _bulk(
        self,
        operation: Operation,
        all_operation: Operation,
        hashes: Hashes,
        **kwargs: Any,
    ) -> None:
        if hashes is None:
            await self._call(all_operation, kwargs)
            return
        selector = validate_set(hashes)
        await self._call(operation, {"hashes": selector, **kwargs})

    async def _prepare(self, operation: Operation) -> EndpointSpec:
        capability = await self.ensure_detected()
        required = requirement(operation)
        if not required.is_satisfied_by(capability):
            _L.error(f"{operation.name} needs {required}, server has {capability}")
            raise ApiNotSupported(operation, required, capability)
        return resolve(operation, capability.generation, actual=capability)

    async def _call(
        self,
        operation: Operation,
        args: Mapping[str, Any] | None = None,
        *,
        files: Sequence[tuple[str, bytes]] | None = None,
    ) -> RawResponse:
        spec = await self._prepare(operation)
        args = args or {}

        if not spec.per_item:
            return await self._send(spec, args, files)

        # the endpoint takes one hash per request
        selector: BulkSelector = args["hashes"]
        response = None
        for hash_ in selector.hashes:
            response = await self._send(spec, {**args, "hashes": hash_}, files)
        assert response is not None
        return response

    async def _send(
        self,
        spec: EndpointSpec,
        args: Mapping[str, Any],
        files: Sequence[tuple[str, bytes]] | None,
    ) -> RawResponse:
        path, fields = _build(spec, args)
        match spec.payload:
            case Payload.NONE:
                response = await self._transport.send(spec.method, path)
            case Payload.QUERY:
                response = await self._transport.send(spec.method, path, query=fields)
            case Payload.FORM:
                response = await self._transport.send(spec.method, path, form=fields)
            case Payload.MULTIPART:
                name = spec.fields.get("torrents", "torrents")
                uploads = [FileField(name, _[0], _[1]) for _ in files or ()]
                response = await self._transport.send(
                    spec.method, path, form=fields, files=uploads, multipart=True
                )

        if response.status == 403:
            _L.error(f"{spec.method} {path}: forbidden")
            raise NotAuthenticated(f"{path} was refused, login required")
        if not response.ok:
            _L.error(f"{spec.method} {path}: {response.status} {response.reason}")
            raise RequestFailed(response.status, response.reason)
        return response

    def _decode(self, response: RawResponse) -> Any:
        return decode_json(response.body, self._loads)


def _build(spec: EndpointSpec, args: Mapping[str, Any]) -> tuple[str, dict[str, str]]:
    """Turns logical arguments into a concrete path and wire fields."""
    path = spec.path
    if "{" in path:
        values = {k: quote(_to_wire(v), safe="") for k, v in args.items() if v is not None}
        path = path.format_map(values)

    fields = dict(spec.fixed)
    for name, wire_name in spec.fields.items():
        value = args.get(name)
        if value is None:
            continue
        text = _to_wire(value)
        fields[wire_name] = spec.translate.get(name, {}).get(text, text)
    return path, fields


def _to_wire(value: Any) -> str:
    match value:
        case bool():
            return "true" if value else "false"
        case BulkSelector():
            return value.join("|")
        case Enum():
            return str(value.value)
        case _:
            return str(value)


async def _read_torrent(path: Path) -> bytes:
    try:
        return await asyncio.to_thread(path.read_bytes)
    except OSError as e:
        _L.error(f"cannot read {path}: {e}")
        raise InvalidTorrentFile(path) from e


def _check_limit(limit: int) -> None:
    if limit < 0:
        raise ValueError(f"invalid limit: {limit}")


def _check_rss_path(path: str) -> None:
    if not path or not path.strip():
        raise ValueError("the path cannot be empty")
