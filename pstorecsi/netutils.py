"""IP address, netmask and CIDR helpers used for NFS exports and arrays."""

from __future__ import annotations

import ipaddress
import re
import socket

from .powerstore import NFSExport

_IPV4 = re.compile(
    r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)(\.(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)){3}"
)
_UP_TO_SLASH = re.compile(r"^.*/")
_INTEGER = re.compile(r"[+-]?[0-9]+")
_INVALID_IP = "doesn't seem to be a valid IP"


def get_ip_list_from_string(text: str) -> list[str]:
    """Return every IPv4 address found in the text, in order."""
    return [match.group(0) for match in _IPV4.finditer(text)]


def _is_ip(text: str) -> bool:
    if "%" in text:
        return False
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def _parse_mask(text: str) -> str:
    tail = _UP_TO_SLASH.sub("", text[-3:])
    if not _INTEGER.fullmatch(tail):
        raise ValueError("Parse Mask: Error parsing mask")
    bits = int(tail)
    if not 0 <= bits <= 32:
        raise ValueError("Invalid subnet mask")
    return str(ipaddress.IPv4Network((0, bits)).netmask)


def get_ip_with_mask_from_string(text: str) -> str:
    """Turn 'ip' or 'ip/prefix' into 'ip' or 'ip/dotted-mask'.

    Raises ValueError if the address or the prefix is invalid.
    """
    parts = text.split("/")
    ip = parts[0]
    if not _is_ip(ip):
        raise ValueError(_INVALID_IP)
    if len(parts) > 1:
        if len(parts) > 2:
            raise ValueError(_INVALID_IP)
        try:
            mask = _parse_mask(text)
        except ValueError:
            raise ValueError(_INVALID_IP) from None
        ip = f"{ip}/{mask}"
    return ip


def parse_cidr(cidr: str) -> str:
    """Return the first address of a CIDR range with its dotted netmask.

    A plain address is taken as a /32 range. Raises ValueError if invalid.
    """
    if "/" not in cidr:
        cidr += "/32"
    try:
        network = ipaddress.ip_network(cidr, strict=False)
    except ValueError as exc:
        raise ValueError(f"invalid CIDR address: {cidr}") from exc
    mask = get_ip_with_mask_from_string(cidr).split("/")[1]
    return f"{network.network_address}/{mask}"


def external_access_already_added(export: NFSExport, external_access: str) -> bool:
    """True if the external access range is in any host list of the export."""
    try:
        entry = parse_cidr(external_access)
    except ValueError:
        entry = ""
    return any(
        entry in hosts
        for hosts in (export.rw_root_hosts, export.rw_hosts, export.ro_root_hosts, export.ro_hosts)
    )


def reachable_endpoint(endpoint: str) -> bool:
    """True if a TCP connection to 'host:port' succeeds within two seconds."""
    host, sep, port = endpoint.rpartition(":")
    if not sep:
        return False
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        with socket.create_connection((host, int(port)), timeout=2):
            return True
    except (OSError, ValueError):
        return False