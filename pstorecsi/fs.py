"""File system, process and network operations behind one mockable object."""

from __future__ import annotations

import errno
import logging
import os
import re
import shutil
import socket
import subprocess
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable

_log = logging.getLogger("pstorecsi")

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def _unescape(text: str) -> str:
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), text)


@dataclass
class MountInfo:
    """One entry of a mountinfo table."""

    mount_id: int
    parent_id: int
    major_minor: str
    root: str
    mount_point: str
    mount_options: list[str] = field(default_factory=list)
    optional_fields: list[str] = field(default_factory=list)
    fs_type: str = ""
    mount_source: str = ""
    super_options: list[str] = field(default_factory=list)


def _parse_mount_line(line: str) -> MountInfo:
    fields = line.split()
    try:
        sep = fields.index("-", 6)
    except ValueError:
        raise ValueError(f"malformed mount entry: {line!r}") from None
    if sep + 2 >= len(fields) + 1 or len(fields) < sep + 3:
        raise ValueError(f"malformed mount entry: {line!r}")
    try:
        mount_id, parent_id = int(fields[0]), int(fields[1])
    except ValueError:
        raise ValueError(f"malformed mount entry: {line!r}") from None
    super_opts = fields[sep + 3] if len(fields) > sep + 3 else ""
    return MountInfo(
        mount_id=mount_id,
        parent_id=parent_id,
        major_minor=fields[2],
        root=_unescape(fields[3]),
        mount_point=_unescape(fields[4]),
        mount_options=fields[5].split(","),
        optional_fields=fields[6:sep],
        fs_type=fields[sep + 1],
        mount_source=_unescape(fields[sep + 2]),
        super_options=super_opts.split(",") if super_opts else [],
    )


def _mode_for_flags(flag: int) -> str:
    access = flag & (os.O_RDONLY | os.O_WRONLY | os.O_RDWR)
    if flag & os.O_APPEND:
        return "a+b" if access == os.O_RDWR else "ab"
    if access == os.O_WRONLY:
        return "wb"
    if access == os.O_RDWR:
        return "r+b"
    return "rb"


class Fs:
    """Default implementation that uses the operating system directly."""

    def open_file(self, name: str, flag: int, perm: int) -> BinaryIO:
        """Open a file with os-level flags and return a binary file object."""
        fd = os.open(name, flag, perm)
        try:
            return os.fdopen(fd, _mode_for_flags(flag))
        except Exception:
            os.close(fd)
            raise

    def stat(self, name: str) -> os.stat_result:
        """Return the status of a path."""
        return os.stat(name)

    def create(self, name: str) -> BinaryIO:
        """Create or truncate a file and open it for reading and writing."""
        return open(name, "w+b")

    def read_file(self, name: str) -> bytes:
        """Return the whole content of a file."""
        with open(os.path.normpath(name), "rb") as handle:
            return handle.read()

    def write_file(self, filename: str, data: bytes | str, perm: int) -> None:
        """Write data to a file, creating it with perm if needed."""
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        fd = os.open(os.path.normpath(filename), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, perm)
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)

    def is_not_exist(self, err: BaseException | None) -> bool:
        """True if the error reports a missing file."""
        return isinstance(err, OSError) and err.errno == errno.ENOENT

    def is_device_or_resource_busy(self, err: BaseException | None) -> bool:
        """True if the error reports a busy device or resource."""
        return isinstance(err, OSError) and err.errno == errno.EBUSY

    def mkdir(self, name: str, perm: int) -> None:
        """Create one directory."""
        os.mkdir(name, perm)

    def mkdir_all(self, name: str, perm: int) -> None:
        """Create a directory and its missing parents."""
        os.makedirs(name, perm, exist_ok=True)

    def chmod(self, name: str, perm: int) -> None:
        """Change the mode of a path."""
        os.chmod(name, perm)

    def remove(self, name: str) -> None:
        """Remove a file or an empty directory."""
        if os.path.isdir(name) and not os.path.islink(name):
            os.rmdir(name)
        else:
            os.remove(name)

    def remove_all(self, name: str) -> None:
        """Remove a path and everything below it; a missing path is fine."""
        try:
            if os.path.isdir(name) and not os.path.islink(name):
                shutil.rmtree(name)
            else:
                os.remove(name)
        except FileNotFoundError:
            pass

    def write_string(self, file: BinaryIO, text: str) -> int:
        """Write text to an open binary file; return the number of bytes."""
        payload = text.encode("utf-8")
        file.write(payload)
        file.flush()
        return len(payload)

    def exec_command(self, name: str, *args: str) -> bytes:
        """Run a command and return its combined output.

        A non-zero exit raises CalledProcessError carrying the output.
        """
        result = subprocess.run(
            [name, *args], stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=True
        )
        return result.stdout

    def exec_command_output(self, name: str, *args: str) -> bytes:
        """Run a command and return its standard output.

        A non-zero exit raises CalledProcessError carrying both streams.
        """
        result = subprocess.run([name, *args], capture_output=True, check=True)
        return result.stdout

    def parse_proc_mounts(self, content: str | Iterable[str]) -> list[MountInfo]:
        """Parse mountinfo-formatted text into entries."""
        lines = content.splitlines() if isinstance(content, str) else content
        return [_parse_mount_line(line.strip()) for line in lines if line.strip()]

    def mk_file_idempotent(self, path: str) -> bool:
        """Create an empty file unless it exists; True if it was created."""
        try:
            st = self.stat(path)
        except FileNotFoundError:
            try:
                fd = os.open(path, os.O_CREAT, 0o600)
            except OSError:
                _log.error("Unable to create file", extra={"fields": {"path": path}})
                raise
            os.close(fd)
            _log.debug("created file", extra={"fields": {"path": path}})
            return True
        if os.path.stat.S_ISDIR(st.st_mode):
            raise IsADirectoryError("existing path is a directory")
        return False

    def net_dial(self, endpoint: str) -> socket.socket:
        """Open a UDP socket connected to port 80 of the endpoint."""
        last_error: OSError | None = None
        for family, kind, proto, _, address in socket.getaddrinfo(
            endpoint, 80, type=socket.SOCK_DGRAM
        ):
            sock = socket.socket(family, kind, proto)
            try:
                sock.connect(address)
            except OSError as exc:
                sock.close()
                last_error = exc
                continue
            return sock
        raise last_error or OSError(f"cannot resolve {endpoint}")