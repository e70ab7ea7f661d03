from datetime import datetime, timedelta, timezone

from pstorecsi import version


def test_manifest_defaults():
    info = version.manifest()
    assert info["semver"] == "unknown"
    assert info["commit"] == ""
    assert info["formed"] == "Mon, 01 Jan 0001 00:00:00 UTC"
    assert set(info) == {"url", "semver", "commit", "formed"}


def test_manifest_reflects_build_values(monkeypatch):
    monkeypatch.setattr(version, "SEMVER", "1.0.0")
    monkeypatch.setattr(version, "COMMIT_SHA7", "abcdefg")
    monkeypatch.setattr(version, "COMMIT_SHA32", "abcdefg1234567890abcdefg1234567890")
    monkeypatch.setattr(
        version, "COMMIT_TIME", datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    )
    info = version.manifest()
    assert info["semver"] == "1.0.0"
    assert info["commit"] == "abcdefg1234567890abcdefg1234567890"
    assert info["formed"] == "Thu, 04 Mar 2021 05:06:07 UTC"


def test_manifest_offset_without_zone_name(monkeypatch):
    zone = timezone(timedelta(hours=2))
    monkeypatch.setattr(version, "COMMIT_TIME", datetime(2021, 3, 4, 5, 6, 7, tzinfo=zone))
    assert version.manifest()["formed"] == "Thu, 04 Mar 2021 05:06:07 +0200"


def test_manifest_named_zone(monkeypatch):
    zone = timezone(timedelta(hours=-7), "MST")
    monkeypatch.setattr(version, "COMMIT_TIME", datetime(2006, 1, 2, 15, 4, 5, tzinfo=zone))
    assert version.manifest()["formed"] == "Mon, 02 Jan 2006 15:04:05 MST"