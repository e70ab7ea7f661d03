import pytest

from pstorecsi.csi import (
    AccessMode,
    BlockVolume,
    Code,
    CSIError,
    MountVolume,
    Snapshot,
    Topology,
    Volume,
    VolumeCapability,
)


def test_error_string_carries_code_and_message():
    err = CSIError(Code.NOT_FOUND, "missing")
    assert str(err) == "rpc error: code = NotFound desc = missing"
    assert err.message == "missing"
    assert err.code is Code.NOT_FOUND


def test_error_string_uses_camel_case_code_name():
    err = CSIError(Code.INVALID_ARGUMENT, "bad")
    assert str(err) == "rpc error: code = InvalidArgument desc = bad"


def test_error_equality_by_code_and_message():
    a = CSIError(Code.OUT_OF_RANGE, "x")
    b = CSIError(Code.OUT_OF_RANGE, "x")
    c = CSIError(Code.UNKNOWN, "x")
    assert a == b
    assert hash(a) == hash(b)
    assert not a == c


def test_error_accepts_integer_code():
    err = CSIError(int(Code.INVALID_ARGUMENT), "bad")
    assert err.code is Code.INVALID_ARGUMENT


def test_errors_with_different_messages_differ():
    first = CSIError(Code.UNKNOWN, "boom")
    second = CSIError(Code.UNKNOWN, "bang")
    assert not first == second
    assert str(first) == "rpc error: code = Unknown desc = boom"


def test_capability_rejects_both_access_types():
    with pytest.raises(ValueError):
        VolumeCapability(mount=MountVolume(), block=BlockVolume())


def test_capability_holds_mount():
    cap = VolumeCapability(
        access_mode=AccessMode.MULTI_NODE_MULTI_WRITER,
        mount=MountVolume(fs_type="nfs", mount_flags=["ro"]),
    )
    assert cap.mount.fs_type == "nfs"
    assert cap.mount.mount_flags == ["ro"]
    assert cap.block is None
    assert cap.access_mode.value == 5


def test_mount_flags_are_not_shared():
    first = MountVolume()
    second = MountVolume()
    first.mount_flags.append("ro")
    assert second.mount_flags == []


def test_topology_and_volume_defaults():
    assert Topology().segments == {}
    vol = Volume("vol-1", 10)
    assert vol.volume_id == "vol-1"
    assert vol.capacity_bytes == 10
    assert vol.volume_context == {}


def test_snapshot_has_timezone_aware_creation_time():
    snap = Snapshot("snap", "vol", 5)
    assert snap.creation_time.tzinfo is not None
    assert snap.ready_to_use is False
    assert snap.size_bytes == 5