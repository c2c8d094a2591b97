from dataclasses import asdict, dataclass, field
from enum import Enum, Flag, IntEnum, StrEnum, auto
from typing import Any

from .codec import from_wire, rename_keys
from .exceptions import DecodeError


class TorrentListFilter(StrEnum):
    ALL = "all"
    DOWNLOADING = "downloading"
    SEEDING = "seeding"
    COMPLETED = "completed"
    PAUSED = "paused"
    RESUMED = "resumed"
    ACTIVE = "active"
    INACTIVE = "inactive"
    STALLED = "stalled"
    STALLED_UPLOADING = "stalled_uploading"
    STALLED_DOWNLOADING = "stalled_downloading"
    ERRORED = "errored"


class TorrentPriorityChange(Enum):
    MINIMAL = auto()
    DECREASE = auto()
    INCREASE = auto()
    MAXIMAL = auto()


class TorrentContentPriority(IntEnum):
    SKIP = 0
    NORMAL = 1
    HIGH = 6
    MAXIMAL = 7


class TorrentPieceState(IntEnum):
    NOT_DOWNLOADED = 0
    DOWNLOADING = 1
    DOWNLOADED = 2


class TorrentLogSeverity(Flag):
    NORMAL = auto()
    INFO = auto()
    WARNING = auto()
    CRITICAL = auto()
    ALL = NORMAL | INFO | WARNING | CRITICAL


@dataclass
class TorrentListQuery:
    filter: TorrentListFilter = TorrentListFilter.ALL
    category: str | None = None
    sort: str | None = None
    reverse: bool = False
    limit: int | None = None
    offset: int | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "filter": self.filter.value,
            "category": self.category,
            "sort": self.sort,
            "reverse": self.reverse,
            "limit": self.limit,
            "offset": self.offset,
        }


@dataclass
class AddTorrentOptions:
    save_path: str | None = None
    cookie: str | None = None
    category: str | None = None
    skip_checking: bool = False
    paused: bool = False
    root_folder: bool | None = None
    rename: str | None = None
    upload_limit: int | None = None
    download_limit: int | None = None
    sequential: bool = False
    first_last_piece_prio: bool = False

    def to_fields(self) -> dict[str, Any]:
        # empty strings are left out, flags are always sent
        rv: dict[str, Any] = {
            "skip_checking": self.skip_checking,
            "paused": self.paused,
            "sequential": self.sequential,
            "first_last_piece_prio": self.first_last_piece_prio,
            "root_folder": self.root_folder,
            "upload_limit": self.upload_limit,
            "download_limit": self.download_limit,
        }
        for key in ("save_path", "cookie", "category", "rename"):
            value = getattr(self, key)
            if value:
                rv[key] = value
        return rv


@dataclass
class TorrentInfo:
    hash: str
    name: str
    size: int | None = None
    progress: float | None = None
    dlspeed: int | None = None
    upspeed: int | None = None
    priority: int | None = None
    num_seeds: int | None = None
    num_complete: int | None = None
    num_leechs: int | None = None
    num_incomplete: int | None = None
    ratio: float | None = None
    eta: int | None = None
    state: str | None = None
    seq_dl: bool | None = None
    f_l_piece_prio: bool | None = None
    category: str | None = None
    super_seeding: bool | None = None
    force_start: bool | None = None
    auto_tmm: bool | None = None
    save_path: str | None = None
    added_on: int | None = None
    completion_on: int | None = None
    tracker: str | None = None
    dl_limit: int | None = None
    up_limit: int | None = None
    downloaded: int | None = None
    uploaded: int | None = None
    amount_left: int | None = None
    tags: str | None = None


TORRENT_INFO_UNSET = ("dl_limit", "up_limit", "completion_on")


@dataclass
class TorrentProperties:
    save_path: str | None = None
    creation_date: int | None = None
    piece_size: int | None = None
    comment: str | None = None
    total_wasted: int | None = None
    total_uploaded: int | None = None
    total_uploaded_session: int | None = None
    total_downloaded: int | None = None
    total_downloaded_session: int | None = None
    up_limit: int | None = None
    dl_limit: int | None = None
    time_elapsed: int | None = None
    seeding_time: int | None = None
    nb_connections: int | None = None
    nb_connections_limit: int | None = None
    share_ratio: float | None = None
    addition_date: int | None = None
    completion_date: int | None = None
    created_by: str | None = None
    dl_speed_avg: int | None = None
    dl_speed: int | None = None
    up_speed_avg: int | None = None
    up_speed: int | None = None
    eta: int | None = None
    last_seen: int | None = None
    peers: int | None = None
    peers_total: int | None = None
    seeds: int | None = None
    seeds_total: int | None = None
    pieces_have: int | None = None
    pieces_num: int | None = None
    reannounce: int | None = None
    total_size: int | None = None


TORRENT_PROPERTIES_UNSET = (
    "up_limit",
    "dl_limit",
    "completion_date",
    "last_seen",
    "creation_date",
)


@dataclass
class TorrentContent:
    name: str
    size: int
    progress: float | None = None
    priority: int | None = None
    is_seed: bool | None = None
    piece_range: list[int] | None = None
    availability: float | None = None


@dataclass
class TorrentTracker:
    url: str
    # v1 reports a status text, v2 a numeric code
    status: int | str | None = None
    tier: int | str | None = None
    num_peers: int | None = None
    num_seeds: int | None = None
    num_leeches: int | None = None
    num_downloaded: int | None = None
    msg: str | None = None


@dataclass
class GlobalTransferInfo:
    dl_info_speed: int | None = None
    dl_info_data: int | None = None
    up_info_speed: int | None = None
    up_info_data: int | None = None
    dl_rate_limit: int | None = None
    up_rate_limit: int | None = None
    dht_nodes: int | None = None
    connection_status: str | None = None


@dataclass
class PartialData:
    rid: int
    full_update: bool | None = None
    torrents: dict[str, dict[str, Any]] | None = None
    torrents_removed: list[str] | None = None
    categories: dict[str, dict[str, Any]] | None = None
    categories_removed: list[str] | None = None
    server_state: dict[str, Any] | None = None


@dataclass
class PeerPartialData:
    rid: int
    full_update: bool | None = None
    peers: dict[str, dict[str, Any]] | None = None
    peers_removed: list[str] | None = None
    show_flags: bool | None = None


@dataclass
class TorrentLogEntry:
    id: int
    message: str
    timestamp: int
    type: int


@dataclass
class PeerLogEntry:
    id: int
    ip: str
    timestamp: int
    blocked: bool
    reason: str | None = None


@dataclass
class Category:
    name: str
    save_path: str | None = None


CATEGORY_RENAMES = {"savePath": "save_path"}


_RULE_RENAMES = {
    "mustContain": "must_contain",
    "mustNotContain": "must_not_contain",
    "useRegex": "use_regex",
    "episodeFilter": "episode_filter",
    "smartFilter": "smart_filter",
    "previouslyMatchedEpisodes": "previously_matched_episodes",
    "affectedFeeds": "affected_feeds",
    "ignoreDays": "ignore_days",
    "lastMatch": "last_match",
    "addPaused": "add_paused",
    "assignedCategory": "assigned_category",
    "savePath": "save_path",
}


@dataclass
class RssAutoDownloadingRule:
    enabled: bool = True
    must_contain: str = ""
    must_not_contain: str = ""
    use_regex: bool = False
    episode_filter: str = ""
    smart_filter: bool = False
    previously_matched_episodes: list[str] = field(default_factory=list)
    affected_feeds: list[str] = field(default_factory=list)
    ignore_days: int = 0
    last_match: str = ""
    add_paused: bool | None = None
    assigned_category: str = ""
    save_path: str = ""

    @classmethod
    def from_wire(cls, raw: Any) -> "RssAutoDownloadingRule":
        return from_wire(cls, raw, renames=_RULE_RENAMES)

    def to_wire(self) -> dict[str, Any]:
        reverse = {v: k for k, v in _RULE_RENAMES.items()}
        return rename_keys(asdict(self), reverse)


_FEED_RENAMES = {
    "lastBuildDate": "last_build_date",
    "isLoading": "is_loading",
    "hasError": "has_error",
}


@dataclass
class RssFeed:
    url: str
    uid: str | None = None
    title: str | None = None
    last_build_date: str | None = None
    is_loading: bool | None = None
    has_error: bool | None = None
    articles: list[dict[str, Any]] | None = None


@dataclass
class RssFolder:
    items: dict[str, "RssFeed | RssFolder"] = field(default_factory=dict)

    @classmethod
    def from_wire(cls, raw: Any) -> "RssFolder":
        if not isinstance(raw, dict):
            raise DecodeError(f"expected an RSS folder, got {type(raw).__name__}")
        items: dict[str, RssFeed | RssFolder] = {}
        for name, value in raw.items():
            # feeds always carry their URL, folders never do
            if isinstance(value, dict) and "url" in value:
                items[name] = from_wire(RssFeed, value, renames=_FEED_RENAMES)
            else:
                items[name] = cls.from_wire(value)
        return cls(items=items)

