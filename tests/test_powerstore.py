from http import HTTPStatus

from pstorecsi.powerstore import (
    APIError,
    FcPort,
    HostVolumeDetach,
    IPPoolAddress,
    NFSExport,
)


def test_not_found_status():
    err = APIError(HTTPStatus.NOT_FOUND, "volume not found")
    assert err.not_found()
    assert err.host_is_not_exist()
    assert str(err) == "volume not found"


def test_other_status_is_not_not_found():
    err = APIError(HTTPStatus.BAD_REQUEST, "bad request")
    assert not err.not_found()
    assert not err.host_is_not_exist()
    assert err.host_is_not_attached_to_volume()


def test_unprocessable_status_means_not_attached():
    err = APIError(HTTPStatus.UNPROCESSABLE_ENTITY)
    assert err.volume_is_not_attached_to_host()
    assert err.volume_detached_from_host()
    assert not err.not_found()


def test_zero_status_matches_nothing():
    err = APIError()
    checks = [
        err.not_found(),
        err.host_is_not_exist(),
        err.volume_is_not_attached_to_host(),
        err.host_is_not_attached_to_volume(),
        err.volume_detached_from_host(),
    ]
    assert checks == [False] * 5


def test_api_error_keeps_fields():
    err = APIError(500, "oops", severity="Error", arguments=["a"])
    assert err.status_code == 500
    assert err.severity == "Error"
    assert err.arguments == ["a"]
    assert str(err) == "oops"
    assert not err.not_found()


def test_dataclass_defaults():
    assert HostVolumeDetach().volume_id is None
    assert HostVolumeDetach("v").volume_id == "v"
    export = NFSExport(rw_hosts=["10.0.0.0/255.255.255.255"])
    assert export.rw_hosts == ["10.0.0.0/255.255.255.255"]
    assert export.ro_hosts == []
    assert FcPort().is_link_up is False
    addr = IPPoolAddress(address="192.168.1.1", target_iqn="iqn")
    assert (addr.address, addr.target_iqn) == ("192.168.1.1", "iqn")