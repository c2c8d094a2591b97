from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from .endpoints import Operation
    from .types import ApiGeneration, OperationRequirement, ServerCapability


class QbittorrentError(Exception):
    """Base class of every error raised by this package."""


class InvalidIdentifier(QbittorrentError, ValueError):
    def __init__(self, value: object) -> None:
        super().__init__(f"invalid torrent hash: {value!r}")
        self.value = value


class EmptyCollection(QbittorrentError, ValueError):
    def __init__(self, what: str) -> None:
        super().__init__(f"{what} must contain at least one valid item")
        self.what = what


class ApiNotSupported(QbittorrentError):
    """The detected daemon cannot serve the operation.

    Raised before any request for the operation is sent.
    """

    def __init__(
        self,
        operation: Operation,
        required: OperationRequirement,
        actual: ServerCapability,
    ) -> None:
        super().__init__(
            f"{operation.name} requires {required}, server provides {actual}"
        )
        self.operation = operation
        self.required = required
        self.actual = actual


class UnsupportedOperation(ApiNotSupported):
    """The endpoint table has no entry for the generation."""

    def __init__(
        self,
        operation: Operation,
        generation: ApiGeneration,
        required: OperationRequirement,
        actual: ServerCapability | None = None,
    ) -> None:
        QbittorrentError.__init__(
            self, f"{operation.name} has no endpoint in API {generation.name}"
        )
        self.operation = operation
        self.generation = generation
        self.required = required
        # None when resolved before detection
        self.actual = actual


class InvalidTorrentFile(QbittorrentError, ValueError):
    def __init__(self, path: object) -> None:
        super().__init__(f"cannot read torrent file: {path}")
        self.path = path


class NotAuthenticated(QbittorrentError):
    pass


class LoginFailed(NotAuthenticated):
    pass


class TransportError(QbittorrentError):
    """Connection, timeout or TLS failure below the HTTP layer."""


class RequestFailed(QbittorrentError):
    def __init__(self, status_code: int, reason: str | None = None) -> None:
        super().__init__(f"request failed with status {status_code}: {reason}")
        self.status_code = status_code
        self.reason = reason


class DecodeError(QbittorrentError):
    pass


class DetectionFailed(QbittorrentError):
    """The capability probe failed. Nothing is cached, retrying is safe."""
