import datetime as dt
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger


def parse_instant(value: object) -> dt.datetime | None:
    """Parse an ISO 8601 timestamp into an aware datetime.

    Date-only strings resolve to midnight. Naive values are taken as UTC.
    Returns ``None`` for anything that does not parse.
    """
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime.combine(value, dt.time())
    elif isinstance(value, str) and value.strip():
        try:
            parsed = dt.datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def format_instant(instant: dt.datetime) -> str:
    """Render an instant as ``2025-01-01T09:00:00.000Z``, the stored timestamp shape."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=dt.timezone.utc)
    utc = instant.astimezone(dt.timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def whole_minutes_between(later: dt.datetime, earlier: dt.datetime) -> int:
    """Signed distance in whole minutes, truncated toward zero."""
    return int((later - earlier).total_seconds() / 60)


def resolve_timezone(name: str) -> dt.tzinfo:
    """Look up the IANA zone reminders are due in. Unknown names sweep in UTC."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown reminder timezone {!r}, sweeping in UTC instead", name)
        return dt.timezone.utc


def local_today(timezone: str) -> dt.date:
    """Today's calendar date in ``timezone``."""
    return dt.datetime.now(resolve_timezone(timezone)).date()
