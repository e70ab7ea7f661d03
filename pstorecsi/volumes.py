"""Validation and helpers shared by the controller's volume operations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from .csi import Code, CSIError, Snapshot, Volume, VolumeCapability
from .powerstore import APIError, Client, HostVolumeDetach

# Minimal size for volume creation.
MIN_VOLUME_SIZE_BYTES = 1048576
# Minimal size for file system creation (1.5Gi).
MIN_FILESYSTEM_SIZE_BYTES = 1610612736
# Maximum size for volume creation (256 TB).
MAX_VOLUME_SIZE_BYTES = 1099511627776 * 256
# Volume sizes are multiples of this.
VOLUME_SIZE_MULTIPLE = 8192
# Maximum length of a volume name.
MAX_VOLUME_NAME_LENGTH = 128

REPLICATION_PREFIX = "replication.storage.dell.com"
ERR_UNKNOWN_ACCESS_TYPE = "unknown access type is not Block or Mount"
ERR_UNKNOWN_ACCESS_MODE = "access mode cannot be UNKNOWN"
ERR_NO_MULTI_NODE_WRITER = "multi-node with writer(s) only supported for block access type"

KEY_FS_TYPE = "csi.storage.k8s.io/fstype"
KEY_FS_TYPE_OLD = "FsType"
KEY_REPLICATION_ENABLED = "isReplicationEnabled"
KEY_REPLICATION_MODE = "mode"
KEY_REPLICATION_RPO = "rpo"
KEY_REPLICATION_REMOTE_SYSTEM = "remoteSystem"
KEY_REPLICATION_IGNORE_NAMESPACES = "ignoreNamespaces"
KEY_REPLICATION_VG_PREFIX = "volumeGroupPrefix"
KEY_NAS_NAME = "nasName"
KEY_CSI_PVC_NAMESPACE = "csi.storage.k8s.io/pvc/namespace"
KEY_CSI_PVC_NAME = "csi.storage.k8s.io/pvc/name"
KEY_VOLUME_DESCRIPTION = "csi.dell.com/description"

_HOST_NOT_ATTACHED = "Host is not attached to volume"


def validate_volume_name(name: str) -> str:
    """Return the name if it is non-empty and short enough; raise CSIError otherwise."""
    if name == "":
        raise CSIError(Code.INVALID_ARGUMENT, "name cannot be empty")
    if len(name) > MAX_VOLUME_NAME_LENGTH:
        raise CSIError(
            Code.INVALID_ARGUMENT,
            f"name must contain {MAX_VOLUME_NAME_LENGTH} or fewer printable Unicode characters",
        )
    return name


def validate_volume_size(min_size: int, max_size: int) -> tuple[int, int]:
    """Return the size bounds if they are consistent; raise CSIError otherwise."""
    if min_size < 0 or max_size < 0:
        raise CSIError(
            Code.OUT_OF_RANGE,
            f"bad capacity: volume size bytes {min_size} and limit size bytes: {max_size} "
            "must not be negative",
        )
    if max_size < min_size:
        raise CSIError(
            Code.OUT_OF_RANGE,
            f"bad capacity: max size bytes {max_size} can't be less than "
            f"minimum size bytes {min_size}",
        )
    if max_size > MAX_VOLUME_SIZE_BYTES:
        raise CSIError(
            Code.OUT_OF_RANGE,
            f"bad capacity: max size bytes {max_size} can't be more than "
            f"maximum size bytes {MAX_VOLUME_SIZE_BYTES}",
        )
    return min_size, max_size


def csi_volume(volume_id: str, size: int) -> Volume:
    """Build the CSI description of a volume."""
    return Volume(volume_id=volume_id, capacity_bytes=size)


def csi_snapshot(snapshot_id: str, source_volume_id: str, size: int) -> Snapshot:
    """Build the CSI description of a snapshot created now and ready to use."""
    return Snapshot(
        snapshot_id=snapshot_id,
        source_volume_id=source_volume_id,
        size_bytes=size,
        creation_time=datetime.now(timezone.utc),
        ready_to_use=True,
    )


def detach_volume_from_host(ctx: Any, host_id: str, volume_id: str, client: Client) -> None:
    """Detach a volume from a host; an already detached volume is not an error."""
    try:
        client.detach_volume_from_host(ctx, host_id, HostVolumeDetach(volume_id=volume_id))
    except APIError as err:
        if _HOST_NOT_ATTACHED in err.message:
            return
        if err.host_is_not_exist():
            raise CSIError(Code.NOT_FOUND, f"host with ID '{host_id}' not found") from err
        if not (
            err.volume_is_not_attached_to_host()
            or err.host_is_not_attached_to_volume()
            or err.not_found()
            or err.volume_detached_from_host()
        ):
            raise CSIError(
                Code.UNKNOWN, f"unexpected api error when detaching volume from host:{err}"
            ) from err
    except Exception as err:
        raise CSIError(
            Code.UNKNOWN, f"failed to detach volume '{volume_id}' from host: {err}"
        ) from err


def access_type_is_block(capabilities: Iterable[Optional[VolumeCapability]]) -> bool:
    """True if any capability asks for block access."""
    return any(vc is not None and vc.block is not None for vc in capabilities)


def valid_access_types(capabilities: Iterable[Optional[VolumeCapability]]) -> bool:
    """True unless some capability has neither block nor mount access."""
    return all(
        vc is None or vc.block is not None or vc.mount is not None for vc in capabilities
    )


def description(params: Mapping[str, str]) -> str:
    """The volume description from parameters, or '<pvc name>-<pvc namespace>'."""
    if KEY_VOLUME_DESCRIPTION in params:
        return params[KEY_VOLUME_DESCRIPTION]
    return params.get(KEY_CSI_PVC_NAME, "") + "-" + params.get(KEY_CSI_PVC_NAMESPACE, "")