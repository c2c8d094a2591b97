"""
Translation table between logical operations and the wire endpoints of each
API generation.

Every difference between the legacy (v1) and the current (v2) surfaces lives
here: paths, HTTP methods, field names, how "all torrents" is expressed, and
which operations exist at all.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, StrEnum, auto

from .exceptions import UnsupportedOperation
from .types import (
    ApiGeneration,
    ApiVersion,
    OperationRequirement,
    ServerCapability,
)


class HttpMethod(StrEnum):
    GET = "GET"
    POST = "POST"


class Payload(Enum):
    NONE = auto()
    QUERY = auto()
    FORM = auto()
    MULTIPART = auto()


@dataclass(frozen=True)
class EndpointSpec:
    path: str
    method: HttpMethod
    payload: Payload
    # logical argument name -> wire field name
    fields: Mapping[str, str] = field(default_factory=dict)
    # constant wire fields
    fixed: Mapping[str, str] = field(default_factory=dict)
    # one request per hash, for commands that only take a single hash
    per_item: bool = False
    # per-field value rewrites, logical value -> wire value
    translate: Mapping[str, Mapping[str, str]] = field(default_factory=dict)


class Operation(Enum):
    LOGIN = auto()
    LOGOUT = auto()
    GET_API_VERSION = auto()
    GET_MIN_API_VERSION = auto()
    GET_QBITTORRENT_VERSION = auto()
    GET_DEFAULT_SAVE_PATH = auto()

    GET_TORRENT_LIST = auto()
    GET_TORRENT_PROPERTIES = auto()
    GET_TORRENT_CONTENTS = auto()
    GET_TORRENT_TRACKERS = auto()
    GET_TORRENT_WEB_SEEDS = auto()
    GET_TORRENT_PIECE_STATES = auto()
    GET_TORRENT_PIECE_HASHES = auto()
    GET_GLOBAL_TRANSFER_INFO = auto()
    GET_PARTIAL_DATA = auto()
    GET_PEER_PARTIAL_DATA = auto()
    GET_LOG = auto()
    GET_PEER_LOG = auto()

    ADD_TORRENT_FILES = auto()
    ADD_TORRENT_URLS = auto()

    PAUSE = auto()
    PAUSE_ALL = auto()
    RESUME = auto()
    RESUME_ALL = auto()
    RECHECK = auto()
    RECHECK_ALL = auto()
    REANNOUNCE = auto()
    REANNOUNCE_ALL = auto()
    DELETE = auto()
    DELETE_ALL = auto()
    DELETE_WITH_DATA = auto()
    DELETE_ALL_WITH_DATA = auto()

    PRIORITY_MINIMAL = auto()
    PRIORITY_MINIMAL_ALL = auto()
    PRIORITY_DECREASE = auto()
    PRIORITY_DECREASE_ALL = auto()
    PRIORITY_INCREASE = auto()
    PRIORITY_INCREASE_ALL = auto()
    PRIORITY_MAXIMAL = auto()
    PRIORITY_MAXIMAL_ALL = auto()
    SET_FILE_PRIORITY = auto()

    GET_TORRENT_DOWNLOAD_LIMIT = auto()
    SET_TORRENT_DOWNLOAD_LIMIT = auto()
    SET_TORRENT_DOWNLOAD_LIMIT_ALL = auto()
    GET_TORRENT_UPLOAD_LIMIT = auto()
    SET_TORRENT_UPLOAD_LIMIT = auto()
    SET_TORRENT_UPLOAD_LIMIT_ALL = auto()
    GET_GLOBAL_DOWNLOAD_LIMIT = auto()
    SET_GLOBAL_DOWNLOAD_LIMIT = auto()
    GET_GLOBAL_UPLOAD_LIMIT = auto()
    SET_GLOBAL_UPLOAD_LIMIT = auto()
    GET_ALTERNATIVE_SPEED_LIMITS_ENABLED = auto()
    TOGGLE_ALTERNATIVE_SPEED_LIMITS = auto()

    SET_LOCATION = auto()
    SET_LOCATION_ALL = auto()
    RENAME = auto()
    ADD_TRACKERS = auto()

    GET_CATEGORIES = auto()
    ADD_CATEGORY = auto()
    ADD_CATEGORY_WITH_SAVE_PATH = auto()
    EDIT_CATEGORY = auto()
    DELETE_CATEGORIES = auto()
    SET_TORRENT_CATEGORY = auto()
    SET_TORRENT_CATEGORY_ALL = auto()

    SET_AUTOMATIC_TORRENT_MANAGEMENT = auto()
    SET_AUTOMATIC_TORRENT_MANAGEMENT_ALL = auto()
    SET_FORCE_START = auto()
    SET_FORCE_START_ALL = auto()
    SET_SUPER_SEEDING = auto()
    SET_SUPER_SEEDING_ALL = auto()
    TOGGLE_SEQUENTIAL_DOWNLOAD = auto()
    TOGGLE_SEQUENTIAL_DOWNLOAD_ALL = auto()
    TOGGLE_FIRST_LAST_PIECE_PRIORITY = auto()
    TOGGLE_FIRST_LAST_PIECE_PRIORITY_ALL = auto()

    RSS_ADD_FOLDER = auto()
    RSS_ADD_FEED = auto()
    RSS_REMOVE_ITEM = auto()
    RSS_MOVE_ITEM = auto()
    RSS_GET_ITEMS = auto()
    RSS_SET_RULE = auto()
    RSS_RENAME_RULE = auto()
    RSS_REMOVE_RULE = auto()
    RSS_GET_RULES = auto()


# v2 spells "every torrent" as a selector value; v1 has dedicated paths.
ALL_SELECTOR_V2 = "all"

_V2_PREFIX = "/api/v2"


@dataclass(frozen=True)
class _Entry:
    requirement: OperationRequirement
    v1: EndpointSpec | None
    v2: EndpointSpec | None


def _get(path: str, /, **fields: str) -> EndpointSpec:
    return EndpointSpec(path, HttpMethod.GET, Payload.QUERY, fields)


def _post(
    path: str,
    /,
    *,
    fixed: Mapping[str, str] | None = None,
    per_item: bool = False,
    translate: Mapping[str, Mapping[str, str]] | None = None,
    **fields: str,
) -> EndpointSpec:
    payload = Payload.FORM if fields or fixed else Payload.NONE
    return EndpointSpec(
        path,
        HttpMethod.POST,
        payload,
        fields,
        fixed or {},
        per_item=per_item,
        translate=translate or {},
    )


def _upload(path: str, /, **fields: str) -> EndpointSpec:
    return EndpointSpec(path, HttpMethod.POST, Payload.MULTIPART, fields)


def _v2_get(path: str, /, **fields: str) -> EndpointSpec:
    return _get(_V2_PREFIX + path, **fields)


def _v2_post(path: str, /, *, all_: bool = False, **fields: str) -> EndpointSpec:
    if all_:
        return _post(_V2_PREFIX + path, fixed={"hashes": ALL_SELECTOR_V2}, **fields)
    return _post(_V2_PREFIX + path, **fields)


_ANY = OperationRequirement(ApiGeneration.V1)
_V2 = OperationRequirement(ApiGeneration.V2)
_V1_ONLY = OperationRequirement(
    ApiGeneration.V1, maximum_generation=ApiGeneration.V1
)


def _since(*version: int) -> OperationRequirement:
    return OperationRequirement(ApiGeneration.V2, ApiVersion(*version))


_ADD_OPTIONS = {
    "save_path": "savepath",
    "cookie": "cookie",
    "category": "category",
    "skip_checking": "skip_checking",
    "paused": "paused",
    "root_folder": "root_folder",
    "rename": "rename",
    "upload_limit": "upLimit",
    "download_limit": "dlLimit",
    "sequential": "sequentialDownload",
    "first_last_piece_prio": "firstLastPiecePrio",
}

_LIST_OPTIONS = {
    "filter": "filter",
    "category": "category",
    "sort": "sort",
    "reverse": "reverse",
    "limit": "limit",
    "offset": "offset",
}

_LOG_OPTIONS = {
    "normal": "normal",
    "info": "info",
    "warning": "warning",
    "critical": "critical",
    "last_known_id": "last_known_id",
}


_TABLE: dict[Operation, _Entry] = {
    # authentication and versions
    Operation.LOGIN: _Entry(
        _ANY,
        _post("/login", username="username", password="password"),
        _v2_post("/auth/login", username="username", password="password"),
    ),
    Operation.LOGOUT: _Entry(_ANY, _post("/logout"), _v2_post("/auth/logout")),
    Operation.GET_API_VERSION: _Entry(
        _ANY, _get("/version/api"), _v2_get("/app/webapiVersion")
    ),
    Operation.GET_MIN_API_VERSION: _Entry(
        _V1_ONLY, _get("/version/api_min"), None
    ),
    Operation.GET_QBITTORRENT_VERSION: _Entry(
        _ANY, _get("/version/qbittorrent"), _v2_get("/app/version")
    ),
    Operation.GET_DEFAULT_SAVE_PATH: _Entry(
        _ANY, _get("/command/getSavePath"), _v2_get("/app/defaultSavePath")
    ),
    # queries
    Operation.GET_TORRENT_LIST: _Entry(
        _ANY,
        _get("/query/torrents", **_LIST_OPTIONS),
        _v2_get("/torrents/info", **_LIST_OPTIONS),
    ),
    Operation.GET_TORRENT_PROPERTIES: _Entry(
        _ANY,
        _get("/query/propertiesGeneral/{hash}"),
        _v2_get("/torrents/properties", hash="hash"),
    ),
    Operation.GET_TORRENT_CONTENTS: _Entry(
        _ANY,
        _get("/query/propertiesFiles/{hash}"),
        _v2_get("/torrents/files", hash="hash"),
    ),
    Operation.GET_TORRENT_TRACKERS: _Entry(
        _ANY,
        _get("/query/propertiesTrackers/{hash}"),
        _v2_get("/torrents/trackers", hash="hash"),
    ),
    Operation.GET_TORRENT_WEB_SEEDS: _Entry(
        _ANY,
        _get("/query/propertiesWebSeeds/{hash}"),
        _v2_get("/torrents/webseeds", hash="hash"),
    ),
    Operation.GET_TORRENT_PIECE_STATES: _Entry(
        _ANY,
        _get("/query/getPieceStates/{hash}"),
        _v2_get("/torrents/pieceStates", hash="hash"),
    ),
    Operation.GET_TORRENT_PIECE_HASHES: _Entry(
        _ANY,
        _get("/query/getPieceHashes/{hash}"),
        _v2_get("/torrents/pieceHashes", hash="hash"),
    ),
    Operation.GET_GLOBAL_TRANSFER_INFO: _Entry(
        _ANY, _get("/query/transferInfo"), _v2_get("/transfer/info")
    ),
    Operation.GET_PARTIAL_DATA: _Entry(
        _ANY, _get("/sync/maindata", rid="rid"), _v2_get("/sync/maindata", rid="rid")
    ),
    Operation.GET_PEER_PARTIAL_DATA: _Entry(
        _ANY,
        _get("/sync/torrent_peers", hash="hash", rid="rid"),
        _v2_get("/sync/torrentPeers", hash="hash", rid="rid"),
    ),
    Operation.GET_LOG: _Entry(
        _ANY,
        _get("/query/getLog", **_LOG_OPTIONS),
        _v2_get("/log/main", **_LOG_OPTIONS),
    ),
    Operation.GET_PEER_LOG: _Entry(
        _V2, None, _v2_get("/log/peers", last_known_id="last_known_id")
    ),
    # adding torrents
    Operation.ADD_TORRENT_FILES: _Entry(
        _ANY,
        _upload("/command/upload", torrents="torrents", **_ADD_OPTIONS),
        _upload(_V2_PREFIX + "/torrents/add", torrents="torrents", **_ADD_OPTIONS),
    ),
    Operation.ADD_TORRENT_URLS: _Entry(
        _ANY,
        _upload("/command/download", urls="urls", **_ADD_OPTIONS),
        _upload(_V2_PREFIX + "/torrents/add", urls="urls", **_ADD_OPTIONS),
    ),
    # pause, resume, recheck, reannounce, delete
    Operation.PAUSE: _Entry(
        _ANY,
        _post("/command/pause", per_item=True, hashes="hash"),
        _v2_post("/torrents/pause", hashes="hashes"),
    ),
    Operation.PAUSE_ALL: _Entry(
        _ANY, _post("/command/pauseAll"), _v2_post("/torrents/pause", all_=True)
    ),
    Operation.RESUME: _Entry(
        _ANY,
        _post("/command/resume", per_item=True, hashes="hash"),
        _v2_post("/torrents/resume", hashes="hashes"),
    ),
    Operation.RESUME_ALL: _Entry(
        _ANY, _post("/command/resumeAll"), _v2_post("/torrents/resume", all_=True)
    ),
    Operation.RECHECK: _Entry(
        _ANY,
        _post("/command/recheck", per_item=True, hashes="hash"),
        _v2_post("/torrents/recheck", hashes="hashes"),
    ),
    Operation.RECHECK_ALL: _Entry(
        _V2, None, _v2_post("/torrents/recheck", all_=True)
    ),
    Operation.REANNOUNCE: _Entry(
        _since(2, 0, 2), None, _v2_post("/torrents/reannounce", hashes="hashes")
    ),
    Operation.REANNOUNCE_ALL: _Entry(
        _since(2, 0, 2), None, _v2_post("/torrents/reannounce", all_=True)
    ),
    Operation.DELETE: _Entry(
        _ANY,
        _post("/command/delete", hashes="hashes"),
        _post(
            _V2_PREFIX + "/torrents/delete",
            fixed={"deleteFiles": "false"},
            hashes="hashes",
        ),
    ),
    Operation.DELETE_ALL: _Entry(
        _V2,
        None,
        _post(
            _V2_PREFIX + "/torrents/delete",
            fixed={"hashes": ALL_SELECTOR_V2, "deleteFiles": "false"},
        ),
    ),
    Operation.DELETE_WITH_DATA: _Entry(
        _ANY,
        _post("/command/deletePerm", hashes="hashes"),
        _post(
            _V2_PREFIX + "/torrents/delete",
            fixed={"deleteFiles": "true"},
            hashes="hashes",
        ),
    ),
    Operation.DELETE_ALL_WITH_DATA: _Entry(
        _V2,
        None,
        _post(
            _V2_PREFIX + "/torrents/delete",
            fixed={"hashes": ALL_SELECTOR_V2, "deleteFiles": "true"},
        ),
    ),
    # queue priority
    Operation.PRIORITY_MINIMAL: _Entry(
        _ANY,
        _post("/command/bottomPrio", hashes="hashes"),
        _v2_post("/torrents/bottomPrio", hashes="hashes"),
    ),
    Operation.PRIORITY_MINIMAL_ALL: _Entry(
        _V2, None, _v2_post("/torrents/bottomPrio", all_=True)
    ),
    Operation.PRIORITY_DECREASE: _Entry(
        _ANY,
        _post("/command/decreasePrio", hashes="hashes"),
        _v2_post("/torrents/decreasePrio", hashes="hashes"),
    ),
    Operation.PRIORITY_DECREASE_ALL: _Entry(
        _V2, None, _v2_post("/torrents/decreasePrio", all_=True)
    ),
    Operation.PRIORITY_INCREASE: _Entry(
        _ANY,
        _post("/command/increasePrio", hashes="hashes"),
        _v2_post("/torrents/increasePrio", hashes="hashes"),
    ),
    Operation.PRIORITY_INCREASE_ALL: _Entry(
        _V2, None, _v2_post("/torrents/increasePrio", all_=True)
    ),
    Operation.PRIORITY_MAXIMAL: _Entry(
        _ANY,
        _post("/command/topPrio", hashes="hashes"),
        _v2_post("/torrents/topPrio", hashes="hashes"),
    ),
    Operation.PRIORITY_MAXIMAL_ALL: _Entry(
        _V2, None, _v2_post("/torrents/topPrio", all_=True)
    ),
    Operation.SET_FILE_PRIORITY: _Entry(
        _ANY,
        _post(
            "/command/setFilePrio",
            # the legacy surface numbers "high" as 2
            translate={"priority": {"6": "2"}},
            hash="hash",
            id="id",
            priority="priority",
        ),
        _v2_post("/torrents/filePrio", hash="hash", id="id", priority="priority"),
    ),
    # speed limits
    Operation.GET_TORRENT_DOWNLOAD_LIMIT: _Entry(
        _ANY,
        _post("/command/getTorrentsDlLimit", hashes="hashes"),
        _v2_post("/torrents/downloadLimit", hashes="hashes"),
    ),
    Operation.SET_TORRENT_DOWNLOAD_LIMIT: _Entry(
        _ANY,
        _post("/command/setTorrentsDlLimit", hashes="hashes", limit="limit"),
        _v2_post("/torrents/setDownloadLimit", hashes="hashes", limit="limit"),
    ),
    Operation.SET_TORRENT_DOWNLOAD_LIMIT_ALL: _Entry(
        _V2, None, _v2_post("/torrents/setDownloadLimit", all_=True, limit="limit")
    ),
    Operation.GET_TORRENT_UPLOAD_LIMIT: _Entry(
        _ANY,
        _post("/command/getTorrentsUpLimit", hashes="hashes"),
        _v2_post("/torrents/uploadLimit", hashes="hashes"),
    ),
    Operation.SET_TORRENT_UPLOAD_LIMIT: _Entry(
        _ANY,
        _post("/command/setTorrentsUpLimit", hashes="hashes", limit="limit"),
        _v2_post("/torrents/setUploadLimit", hashes="hashes", limit="limit"),
    ),
    Operation.SET_TORRENT_UPLOAD_LIMIT_ALL: _Entry(
        _V2, None, _v2_post("/torrents/setUploadLimit", all_=True, limit="limit")
    ),
    Operation.GET_GLOBAL_DOWNLOAD_LIMIT: _Entry(
        _ANY, _post("/command/getGlobalDlLimit"), _v2_get("/transfer/downloadLimit")
    ),
    Operation.SET_GLOBAL_DOWNLOAD_LIMIT: _Entry(
        _ANY,
        _post("/command/setGlobalDlLimit", limit="limit"),
        _v2_post("/transfer/setDownloadLimit", limit="limit"),
    ),
    Operation.GET_GLOBAL_UPLOAD_LIMIT: _Entry(
        _ANY, _post("/command/getGlobalUpLimit"), _v2_get("/transfer/uploadLimit")
    ),
    Operation.SET_GLOBAL_UPLOAD_LIMIT: _Entry(
        _ANY,
        _post("/command/setGlobalUpLimit", limit="limit"),
        _v2_post("/transfer/setUploadLimit", limit="limit"),
    ),
    Operation.GET_ALTERNATIVE_SPEED_LIMITS_ENABLED: _Entry(
        _ANY,
        _get("/command/alternativeSpeedLimitsEnabled"),
        _v2_get("/transfer/speedLimitsMode"),
    ),
    Operation.TOGGLE_ALTERNATIVE_SPEED_LIMITS: _Entry(
        _ANY,
        _post("/command/toggleAlternativeSpeedLimits"),
        _v2_post("/transfer/toggleSpeedLimitsMode"),
    ),
    # location, name, trackers
    Operation.SET_LOCATION: _Entry(
        _ANY,
        _post("/command/setLocation", hashes="hashes", location="location"),
        _v2_post("/torrents/setLocation", hashes="hashes", location="location"),
    ),
    Operation.SET_LOCATION_ALL: _Entry(
        _V2, None, _v2_post("/torrents/setLocation", all_=True, location="location")
    ),
    Operation.RENAME: _Entry(
        _ANY,
        _post("/command/rename", hash="hash", name="name"),
        _v2_post("/torrents/rename", hash="hash", name="name"),
    ),
    Operation.ADD_TRACKERS: _Entry(
        _ANY,
        _post("/command/addTrackers", hash="hash", urls="urls"),
        _v2_post("/torrents/addTrackers", hash="hash", urls="urls"),
    ),
    # categories
    Operation.GET_CATEGORIES: _Entry(
        _since(2, 1, 1), None, _v2_get("/torrents/categories")
    ),
    Operation.ADD_CATEGORY: _Entry(
        _ANY,
        _post("/command/addCategory", category="category"),
        _v2_post("/torrents/createCategory", category="category"),
    ),
    Operation.ADD_CATEGORY_WITH_SAVE_PATH: _Entry(
        _since(2, 1, 0),
        None,
        _v2_post("/torrents/createCategory", category="category", save_path="savePath"),
    ),
    Operation.EDIT_CATEGORY: _Entry(
        _since(2, 1, 0),
        None,
        _v2_post("/torrents/editCategory", category="category", save_path="savePath"),
    ),
    Operation.DELETE_CATEGORIES: _Entry(
        _ANY,
        _post("/command/removeCategories", categories="categories"),
        _v2_post("/torrents/removeCategories", categories="categories"),
    ),
    Operation.SET_TORRENT_CATEGORY: _Entry(
        _ANY,
        _post("/command/setCategory", hashes="hashes", category="category"),
        _v2_post("/torrents/setCategory", hashes="hashes", category="category"),
    ),
    Operation.SET_TORRENT_CATEGORY_ALL: _Entry(
        _V2, None, _v2_post("/torrents/setCategory", all_=True, category="category")
    ),
    # per-torrent toggles
    Operation.SET_AUTOMATIC_TORRENT_MANAGEMENT: _Entry(
        _ANY,
        _post("/command/setAutoTMM", hashes="hashes", enabled="enable"),
        _v2_post("/torrents/setAutoManagement", hashes="hashes", enabled="enable"),
    ),
    Operation.SET_AUTOMATIC_TORRENT_MANAGEMENT_ALL: _Entry(
        _V2,
        None,
        _v2_post("/torrents/setAutoManagement", all_=True, enabled="enable"),
    ),
    Operation.SET_FORCE_START: _Entry(
        _ANY,
        _post("/command/setForceStart", hashes="hashes", enabled="value"),
        _v2_post("/torrents/setForceStart", hashes="hashes", enabled="value"),
    ),
    Operation.SET_FORCE_START_ALL: _Entry(
        _V2, None, _v2_post("/torrents/setForceStart", all_=True, enabled="value")
    ),
    Operation.SET_SUPER_SEEDING: _Entry(
        _ANY,
        _post("/command/setSuperSeeding", hashes="hashes", enabled="value"),
        _v2_post("/torrents/setSuperSeeding", hashes="hashes", enabled="value"),
    ),
    Operation.SET_SUPER_SEEDING_ALL: _Entry(
        _V2, None, _v2_post("/torrents/setSuperSeeding", all_=True, enabled="value")
    ),
    Operation.TOGGLE_SEQUENTIAL_DOWNLOAD: _Entry(
        _ANY,
        _post("/command/toggleSequentialDownload", hashes="hashes"),
        _v2_post("/torrents/toggleSequentialDownload", hashes="hashes"),
    ),
    Operation.TOGGLE_SEQUENTIAL_DOWNLOAD_ALL: _Entry(
        _V2, None, _v2_post("/torrents/toggleSequentialDownload", all_=True)
    ),
    Operation.TOGGLE_FIRST_LAST_PIECE_PRIORITY: _Entry(
        _ANY,
        _post("/command/toggleFirstLastPiecePrio", hashes="hashes"),
        _v2_post("/torrents/toggleFirstLastPiecePrio", hashes="hashes"),
    ),
    Operation.TOGGLE_FIRST_LAST_PIECE_PRIORITY_ALL: _Entry(
        _V2, None, _v2_post("/torrents/toggleFirstLastPiecePrio", all_=True)
    ),
    # RSS
    Operation.RSS_ADD_FOLDER: _Entry(_V2, None, _v2_post("/rss/addFolder", path="path")),
    Operation.RSS_ADD_FEED: _Entry(
        _V2, None, _v2_post("/rss/addFeed", url="url", path="path")
    ),
    Operation.RSS_REMOVE_ITEM: _Entry(
        _V2, None, _v2_post("/rss/removeItem", path="path")
    ),
    Operation.RSS_MOVE_ITEM: _Entry(
        _V2, None, _v2_post("/rss/moveItem", path="itemPath", new_path="destPath")
    ),
    Operation.RSS_GET_ITEMS: _Entry(
        _V2, None, _v2_get("/rss/items", with_data="withData")
    ),
    Operation.RSS_SET_RULE: _Entry(
        _V2, None, _v2_post("/rss/setRule", name="ruleName", rule="ruleDef")
    ),
    Operation.RSS_RENAME_RULE: _Entry(
        _V2, None, _v2_post("/rss/renameRule", name="ruleName", new_name="newRuleName")
    ),
    Operation.RSS_REMOVE_RULE: _Entry(
        _V2, None, _v2_post("/rss/removeRule", name="ruleName")
    ),
    Operation.RSS_GET_RULES: _Entry(_V2, None, _v2_get("/rss/rules")),
}


def requirement(operation: Operation) -> OperationRequirement:
    return _TABLE[operation].requirement


def resolve(
    operation: Operation,
    generation: ApiGeneration,
    *,
    actual: ServerCapability | None = None,
) -> EndpointSpec:
    """
    Returns the wire shape of an operation for a generation.
    Never substitutes the other generation's endpoint.
    """
    entry = _TABLE[operation]
    spec = entry.v1 if generation == ApiGeneration.V1 else entry.v2
    if spec is None:
        raise UnsupportedOperation(operation, generation, entry.requirement, actual)
    return spec
