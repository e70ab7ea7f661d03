"""Container Storage Interface data types and status errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional

_LABELS = {"OK": "OK", "CANCELLED": "Canceled"}


class Code(IntEnum):
    """Status codes carried by CSI errors."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16

    @property
    def label(self) -> str:
        """The code's name as it appears in error descriptions."""
        if self.name in _LABELS:
            return _LABELS[self.name]
        return "".join(part.capitalize() for part in self.name.split("_"))


class CSIError(Exception):
    """An error with a status code, as returned to the container orchestrator."""

    def __init__(self, code: Code | int, message: str) -> None:
        super().__init__(message)
        self.code = Code(code)
        self.message = message

    def __str__(self) -> str:
        return f"rpc error: code = {self.code.label} desc = {self.message}"

    def __repr__(self) -> str:
        return f"CSIError({self.code.name}, {self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CSIError):
            return NotImplemented
        return (self.code, self.message) == (other.code, other.message)

    def __hash__(self) -> int:
        return hash((self.code, self.message))


class AccessMode(IntEnum):
    """How a volume may be accessed by nodes."""

    UNKNOWN = 0
    SINGLE_NODE_WRITER = 1
    SINGLE_NODE_READER_ONLY = 2
    MULTI_NODE_READER_ONLY = 3
    MULTI_NODE_SINGLE_WRITER = 4
    MULTI_NODE_MULTI_WRITER = 5
    SINGLE_NODE_SINGLE_WRITER = 6
    SINGLE_NODE_MULTI_WRITER = 7


@dataclass
class MountVolume:
    """Access through a mounted file system."""

    fs_type: str = ""
    mount_flags: list[str] = field(default_factory=list)
    volume_mount_group: str = ""


@dataclass
class BlockVolume:
    """Access through a raw block device."""


@dataclass
class VolumeCapability:
    """Requested access mode and access type; at most one access type is set."""

    access_mode: AccessMode = AccessMode.UNKNOWN
    mount: Optional[MountVolume] = None
    block: Optional[BlockVolume] = None

    def __post_init__(self) -> None:
        if self.mount is not None and self.block is not None:
            raise ValueError("a volume capability has either a mount or a block access type")


@dataclass
class Topology:
    """Accessibility segments of a volume or node."""

    segments: dict[str, str] = field(default_factory=dict)


@dataclass
class Volume:
    """A provisioned volume."""

    volume_id: str
    capacity_bytes: int = 0
    volume_context: dict[str, str] = field(default_factory=dict)


@dataclass
class Snapshot:
    """A snapshot of a volume."""

    snapshot_id: str
    source_volume_id: str
    size_bytes: int = 0
    creation_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ready_to_use: bool = False