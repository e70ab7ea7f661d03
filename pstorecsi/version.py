"""Build identification of the driver and its manifest."""

from __future__ import annotations

from datetime import datetime, timezone

# Values below are meant to be overwritten by the build.
SEMVER: str = "unknown"
COMMIT_SHA7: str = ""
COMMIT_SHA32: str = ""
COMMIT_TIME: datetime | None = None
PROJECT_URL: str = ""

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _zone_name(moment: datetime) -> str:
    name = moment.tzname()
    if name and not name.startswith(("UTC+", "UTC-")):
        return name
    offset = moment.utcoffset()
    minutes = int(offset.total_seconds()) // 60 if offset else 0
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}{mins:02d}"


def _rfc1123(moment: datetime) -> str:
    """Format a time as 'Mon, 02 Jan 2006 15:04:05 MST'."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return (
        f"{_DAYS[moment.weekday()]}, {moment.day:02d} {_MONTHS[moment.month - 1]} "
        f"{moment.year:04d} {moment.hour:02d}:{moment.minute:02d}:{moment.second:02d} "
        f"{_zone_name(moment)}"
    )


def manifest() -> dict[str, str]:
    """Return additional information about the driver build."""
    return {
        "url": PROJECT_URL,
        "semver": SEMVER,
        "commit": COMMIT_SHA32,
        "formed": _rfc1123(COMMIT_TIME or _ZERO_TIME),
    }