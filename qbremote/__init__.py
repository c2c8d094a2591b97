from .client import QbittorrentClient as QbittorrentClient
from .client import create_client as create_client
from .exceptions import ApiNotSupported as ApiNotSupported
from .exceptions import DecodeError as DecodeError
from .exceptions import DetectionFailed as DetectionFailed
from .exceptions import EmptyCollection as EmptyCollection
from .exceptions import InvalidIdentifier as InvalidIdentifier
from .exceptions import LoginFailed as LoginFailed
from .exceptions import NotAuthenticated as NotAuthenticated
from .exceptions import QbittorrentError as QbittorrentError
from .exceptions import RequestFailed as RequestFailed
from .exceptions import TransportError as TransportError
from .exceptions import UnsupportedOperation as UnsupportedOperation
from .models import AddTorrentOptions as AddTorrentOptions
from .models import TorrentListQuery as TorrentListQuery
from .types import ApiGeneration as ApiGeneration
from .types import ApiVersion as ApiVersion
from .types import ClientState as ClientState
from .types import ServerCapability as ServerCapability
