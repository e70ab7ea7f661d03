"""Types exchanged with the PowerStore storage API client."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Optional, Protocol, runtime_checkable


class APIError(Exception):
    """An error answer of the storage API."""

    def __init__(
        self,
        status_code: int = 0,
        message: str = "",
        severity: str = "",
        arguments: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.severity = severity
        self.arguments = list(arguments) if arguments else []

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"APIError({self.status_code}, {self.message!r})"

    def not_found(self) -> bool:
        """True if the requested object does not exist."""
        return self.status_code == HTTPStatus.NOT_FOUND

    def host_is_not_exist(self) -> bool:
        """True if the host does not exist."""
        return self.status_code == HTTPStatus.NOT_FOUND

    def volume_is_not_attached_to_host(self) -> bool:
        """True if the volume is not attached to the host."""
        return self.status_code == HTTPStatus.UNPROCESSABLE_ENTITY

    def host_is_not_attached_to_volume(self) -> bool:
        """True if the host is not attached to the volume."""
        return self.status_code == HTTPStatus.BAD_REQUEST

    def volume_detached_from_host(self) -> bool:
        """True if the volume has already been detached from the host."""
        return self.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


@dataclass
class IPPoolAddress:
    """A storage network address of an appliance."""

    id: str = ""
    address: str = ""
    appliance_id: str = ""
    target_iqn: str = ""


@dataclass
class FcPort:
    """A Fibre Channel port of an appliance."""

    id: str = ""
    wwn: str = ""
    wwn_node: str = ""
    wwn_nvme: str = ""
    appliance_id: str = ""
    is_link_up: bool = False


@dataclass
class NFSExport:
    """Host access lists of an NFS export."""

    id: str = ""
    rw_hosts: list[str] = field(default_factory=list)
    ro_hosts: list[str] = field(default_factory=list)
    rw_root_hosts: list[str] = field(default_factory=list)
    ro_root_hosts: list[str] = field(default_factory=list)


@dataclass
class Cluster:
    """Cluster-wide information."""

    id: str = ""
    name: str = ""
    nvme_nqn: str = ""


@dataclass
class HostVolumeDetach:
    """Parameters of a detach request."""

    volume_id: Optional[str] = None


@runtime_checkable
class Client(Protocol):
    """Operations of the storage API used by the driver; errors raise APIError."""

    def get_volume(self, ctx: Any, volume_id: str) -> Any: ...

    def get_fs(self, ctx: Any, fs_id: str) -> Any: ...

    def detach_volume_from_host(
        self, ctx: Any, host_id: str, params: HostVolumeDetach
    ) -> Any: ...

    def get_storage_iscsi_target_addresses(self, ctx: Any) -> list[IPPoolAddress]: ...

    def get_storage_nvme_tcp_target_addresses(self, ctx: Any) -> list[IPPoolAddress]: ...

    def get_cluster(self, ctx: Any) -> Cluster: ...

    def get_fc_ports(self, ctx: Any) -> list[FcPort]: ...

    def get_software_major_minor_version(self, ctx: Any) -> float: ...