from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import NamedTuple, Self


class ApiGeneration(IntEnum):
    V1 = 1
    V2 = 2


class ApiVersion(NamedTuple):
    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> Self:
        """
        Parses a dotted version such as "2.8.3" or "2.0".
        Raises ValueError for anything else.
        """
        parts = text.strip().split(".")
        if not 1 <= len(parts) <= 3:
            raise ValueError(f"invalid version: {text!r}")
        numbers = [int(_) for _ in parts]
        if any(_ < 0 for _ in numbers):
            raise ValueError(f"invalid version: {text!r}")
        return cls(*numbers)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class ServerCapability:
    generation: ApiGeneration
    version: ApiVersion

    def __str__(self) -> str:
        return f"API {self.generation.name} ({self.version})"


@dataclass(frozen=True)
class OperationRequirement:
    minimum_generation: ApiGeneration
    minimum_version: ApiVersion | None = None
    # set for operations the newer generation dropped
    maximum_generation: ApiGeneration | None = None

    def is_satisfied_by(self, capability: ServerCapability) -> bool:
        if (
            self.maximum_generation is not None
            and capability.generation > self.maximum_generation
        ):
            return False
        if capability.generation > self.minimum_generation:
            return True
        if capability.generation < self.minimum_generation:
            return False
        if self.minimum_version is None:
            return True
        return capability.version >= self.minimum_version

    def __str__(self) -> str:
        rv = f"API {self.minimum_generation.name}"
        if self.minimum_version is not None:
            rv += f" >= {self.minimum_version}"
        if self.maximum_generation is not None:
            if self.maximum_generation == self.minimum_generation:
                return rv + " only"
            rv += f" up to {self.maximum_generation.name}"
        return rv


@dataclass(frozen=True)
class BulkSelector:
    """Either an ordered list of torrent hashes or every torrent."""

    hashes: tuple[str, ...] = ()
    is_all: bool = False

    @classmethod
    def all(cls) -> Self:
        return cls(is_all=True)

    def join(self, separator: str = "|") -> str:
        if self.is_all:
            raise ValueError("the all-torrents selector has no generic wire form")
        return separator.join(self.hashes)


class ClientState(Enum):
    UNINITIALIZED = "uninitialized"
    AUTHENTICATING = "authenticating"
    DETECTING = "detecting"
    READY = "ready"
    LOGGED_OUT = "logged_out"
