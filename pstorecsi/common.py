"""Constants and helpers shared by the controller and node services."""

from __future__ import annotations

import logging
import os
import re
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from .csi import Topology, VolumeCapability
from .envvars import ENV_PODMON_API_PORT, ENV_PODMON_ARRAY_CONNECTIVITY_POLL_RATE
from .powerstore import Client

_log = logging.getLogger("pstorecsi")

# Default name of the driver.
DRIVER_NAME = "csi-powerstore.dellemc.com"
# Longer description of the driver.
VERBOSE_NAME = "CSI Driver for Dell EMC PowerStore"

# Environment variable holding the CSI endpoint.
ENV_CSI_ENDPOINT = "CSI_ENDPOINT"

KEY_ALLOW_ROOT = "allowRoot"
KEY_NFS_EXPORT_PATH = "NfsExportPath"
KEY_HOST_IP = "HostIP"
KEY_EXPORT_ID = "ExportID"
KEY_NAT_IP = "NatIP"
KEY_ARRAY_ID = "arrayID"
KEY_ARRAY_VOLUME_NAME = "Name"
KEY_PROTOCOL = "Protocol"
KEY_NFS_ACL = "nfsAcls"
KEY_NAS_NAME = "nasName"
KEY_VOLUME_DESCRIPTION = "csi.dell.com/description"
KEY_APPLIANCE_ID = "csi.dell.com/appliance_id"
KEY_PROTECTION_POLICY_ID = "csi.dell.com/protection_policy_id"
KEY_PERFORMANCE_POLICY_ID = "csi.dell.com/performance_policy_id"
KEY_APP_TYPE = "csi.dell.com/app_type"
KEY_APP_TYPE_OTHER = "csi.dell.com/app_type_other"
KEY_CONFIG_TYPE = "csi.dell.com/config_type"
KEY_ACCESS_POLICY = "csi.dell.com/access_policy"
KEY_LOCKING_POLICY = "csi.dell.com/locking_policy"
KEY_FOLDER_RENAME_POLICY = "csi.dell.com/folder_rename_policy"
KEY_IS_ASYNC_MTIME_ENABLED = "csi.dell.com/is_async_mtime_enabled"
KEY_FILE_EVENTS_PUBLISHING_MODE = "csi.dell.com/file_events_publishing_mode"
KEY_HOST_IO_SIZE = "csi.dell.com/host_io_size"
KEY_VOLUME_GROUP_ID = "csi.dell.com/volume_group_id"
KEY_FLR_CREATE_MODE = "csi.dell.com/flr_attributes.flr_create.mode"
KEY_FLR_DEFAULT_RETENTION = "csi.dell.com/flr_attributes.flr_create.default_retention"
KEY_FLR_MIN_RETENTION = "csi.dell.com/flr_attributes.flr_create.minimum_retention"
KEY_FLR_MAX_RETENTION = "csi.dell.com/flr_attributes.flr_create.maximum_retention"
KEY_SERVICE_TAG = "serviceTag"

PUBLISH_CONTEXT_DEVICE_WWN = "DEVICE_WWN"
PUBLISH_CONTEXT_LUN_ADDRESS = "LUN_ADDRESS"
PUBLISH_CONTEXT_ISCSI_PORTALS_PREFIX = "PORTAL"
PUBLISH_CONTEXT_ISCSI_TARGETS_PREFIX = "TARGET"
PUBLISH_CONTEXT_NVME_TCP_PORTALS_PREFIX = "NVMETCPPORTAL"
PUBLISH_CONTEXT_NVME_TCP_TARGETS_PREFIX = "NVMETCPTARGET"
PUBLISH_CONTEXT_NVME_FC_PORTALS_PREFIX = "NVMEFCPORTAL"
PUBLISH_CONTEXT_NVME_FC_TARGETS_PREFIX = "NVMEFCTARGET"
PUBLISH_CONTEXT_FC_WWPN_PREFIX = "FCWWPN"
PUBLISH_CONTEXT_REMOTE_DEVICE_WWN = "REMOTE_DEVICE_WWN"
PUBLISH_CONTEXT_REMOTE_LUN_ADDRESS = "REMOTE_LUN_ADDRESS"
PUBLISH_CONTEXT_REMOTE_ISCSI_PORTALS_PREFIX = "REMOTE_PORTAL"
PUBLISH_CONTEXT_REMOTE_ISCSI_TARGETS_PREFIX = "REMOTE_TARGET"
PUBLISH_CONTEXT_REMOTE_NVME_TCP_PORTALS_PREFIX = "REMOTE_NVMETCPPORTAL"
PUBLISH_CONTEXT_REMOTE_NVME_TCP_TARGETS_PREFIX = "REMOTE_NVMETCPTARGET"
PUBLISH_CONTEXT_REMOTE_NVME_FC_PORTALS_PREFIX = "REMOTE_NVMEFCPORTAL"
PUBLISH_CONTEXT_REMOTE_NVME_FC_TARGETS_PREFIX = "REMOTE_NVMEFCTARGET"
PUBLISH_CONTEXT_REMOTE_FC_WWPN_PREFIX = "REMOTE_FCWWPN"

WWN_PREFIX = "naa."
SYNC_MODE = "SYNC"
ASYNC_MODE = "ASYNC"
METRO_MODE = "METRO"
ZERO = "Zero"

DEFAULT_PODMON_API_PORT_NUMBER = "8083"
DEFAULT_PODMON_POLL_RATE = 60
# Timeout of HTTP requests, in seconds.
TIMEOUT = 5.0
ARRAY_STATUS = "/array-status"

_PROTO_ADDR = re.compile(r"(?i)^((?:(?:tcp|udp|ip)[46]?)|(?:unix(?:gram|packet)?))://(.+)$")
_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT32_MIN, _INT32_MAX = -(2**31), 2**31 - 1


class TransportType(str, Enum):
    """SCSI or NVMe transport protocol used to reach block volumes."""

    FC = "FC"
    ISCSI = "ISCSI"
    AUTO = "AUTO"
    NONE = "NONE"
    NVMETCP = "NVMETCP"
    NVMEFC = "NVMEFC"


@dataclass(frozen=True)
class ISCSITargetInfo:
    """An iSCSI target and the portal it is reached through."""

    target: str
    portal: str


@dataclass(frozen=True)
class NVMeTargetInfo:
    """An NVMe subsystem and the portal it is reached through."""

    target: str
    portal: str


@dataclass(frozen=True)
class FCTargetInfo:
    """A Fibre Channel target port."""

    wwpn: str


def _env(environ: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def get_csi_endpoint(environ: Optional[Mapping[str, str]] = None) -> tuple[str, str]:
    """Return the protocol and address of the CSI endpoint.

    Raises ValueError if the endpoint is not set.
    """
    endpoint = _env(environ).get(ENV_CSI_ENDPOINT, "").strip()
    if not endpoint:
        raise ValueError(f"missing {ENV_CSI_ENDPOINT}")
    match = _PROTO_ADDR.match(endpoint)
    if match:
        return match.group(1).lower(), match.group(2)
    return "unix", endpoint


def rm_sock_file(fs: Any, environ: Optional[Mapping[str, str]] = None) -> bool:
    """Remove a socket file left by a previous run; True if one was removed."""
    try:
        proto, addr = get_csi_endpoint(environ)
    except ValueError as exc:
        _log.error("Error: failed to get CSI endpoint: %s", exc)
        return False
    if proto != "unix":
        return False
    try:
        fs.stat(addr)
    except FileNotFoundError:
        return False
    except OSError as exc:
        _log.error("Error: socket file %s may or may not exist: %s", addr, exc)
        return False
    try:
        fs.remove_all(addr)
    except OSError as exc:
        _log.error("Error: failed to remove socket file %s: %s", addr, exc)
        return False
    _log.info("removed socket file %s", addr)
    return True


def polling_frequency(environ: Optional[Mapping[str, str]] = None) -> int:
    """Seconds between array connectivity checks, from the environment or the default."""
    raw = _env(environ).get(ENV_PODMON_ARRAY_CONNECTIVITY_POLL_RATE)
    if raw is not None and _INTEGER.fullmatch(raw):
        value = min(max(int(raw), _INT32_MIN), _INT32_MAX)
        if value != 0:
            _log.debug("use pollingFrequency as %d seconds", value)
            return value
    _log.debug("use default pollingFrequency as %d seconds", DEFAULT_PODMON_POLL_RATE)
    return DEFAULT_PODMON_POLL_RATE


def api_port(environ: Optional[Mapping[str, str]] = None) -> str:
    """The ':port' address of the podmon API, from the environment or the default."""
    port = _env(environ).get(ENV_PODMON_API_PORT)
    if port is not None and port.strip():
        return f":{port}"
    return ":" + DEFAULT_PODMON_API_PORT_NUMBER


def random_string(length: int) -> str:
    """Hex encoding of `length` random bytes (2 * length characters)."""
    return secrets.token_hex(length)


def _matches(appliance_id: str, wanted: str) -> bool:
    return wanted == "" or appliance_id == wanted


def iscsi_targets_info(client: Client, appliance_id: str) -> list[ISCSITargetInfo]:
    """iSCSI targets of the appliance (all appliances if the ID is empty), sorted by ID."""
    try:
        addresses = client.get_storage_iscsi_target_addresses(None)
    except Exception as exc:
        _log.error("%s", exc)
        raise
    return [
        ISCSITargetInfo(target=addr.target_iqn, portal=f"{addr.address}:3260")
        for addr in sorted(addresses, key=lambda a: a.id)
        if _matches(addr.appliance_id, appliance_id)
    ]


def _nvme_nqn(client: Client) -> str:
    try:
        return client.get_cluster(None).nvme_nqn
    except Exception:
        return ""


def nvme_tcp_targets_info(client: Client, appliance_id: str) -> list[NVMeTargetInfo]:
    """NVMe/TCP targets of the appliance (all if the ID is empty), sorted by ID."""
    nqn = _nvme_nqn(client)
    try:
        addresses = client.get_storage_nvme_tcp_target_addresses(None)
    except Exception as exc:
        _log.error("%s", exc)
        raise
    return [
        NVMeTargetInfo(target=nqn, portal=f"{addr.address}:4420")
        for addr in sorted(addresses, key=lambda a: a.id)
        if _matches(addr.appliance_id, appliance_id)
    ]


def fc_targets_info(client: Client, appliance_id: str) -> list[FCTargetInfo]:
    """FC ports of the appliance whose link is up."""
    try:
        ports = client.get_fc_ports(None)
    except Exception as exc:
        _log.error("%s", exc)
        raise
    return [
        FCTargetInfo(wwpn=port.wwn.replace(":", ""))
        for port in ports
        if port.is_link_up and port.appliance_id == appliance_id
    ]


def nvme_fc_targets_info(client: Client, appliance_id: str) -> list[NVMeTargetInfo]:
    """NVMe/FC targets of the appliance (all if the ID is empty) whose link is up."""
    nqn = _nvme_nqn(client)
    try:
        ports = client.get_fc_ports(None)
    except Exception as exc:
        _log.error("%s", exc)
        raise
    result = []
    for port in ports:
        if port.is_link_up and _matches(port.appliance_id, appliance_id):
            node = port.wwn_node.replace(":", "")
            nvme = port.wwn_nvme.replace(":", "")
            portal = f"nn-0x{node}:pn-0x{nvme}".replace("\n", "")
            result.append(NVMeTargetInfo(target=nqn, portal=portal))
    return result


def is_k8s_metadata_supported(client: Client) -> bool:
    """True if the array software is version 3.0 or later."""
    try:
        version = client.get_software_major_minor_version(None)
    except Exception as exc:
        _log.error("couldn't get the software version installed on the PowerStore array: %s", exc)
        return False
    if version >= 3.0:
        return True
    _log.debug("Software version installed on the PowerStore array: %s", version)
    return False


def has_required_topology(
    topologies: Iterable[Topology],
    arr_ip: str,
    required_topology: str,
    driver_name: str = DRIVER_NAME,
) -> bool:
    """True if some topology marks the protocol as available on the array."""
    topologies = list(topologies or [])
    if not topologies or not arr_ip or not required_topology:
        return False
    key = f"{driver_name}/{arr_ip}-{required_topology.lower()}"
    return any(
        key in topology.segments and topology.segments[key].lower() == "true"
        for topology in topologies
    )


def nfs_topology(arr_ip: str, driver_name: str = DRIVER_NAME) -> list[Topology]:
    """A topology list that offers only NFS on the array."""
    return [Topology(segments={f"{driver_name}/{arr_ip}-nfs": "true"})]


def mount_flags(capability: Optional[VolumeCapability]) -> Optional[list[str]]:
    """The mount flags of a mount capability, or None."""
    if capability is None or capability.mount is None:
        return None
    return capability.mount.mount_flags