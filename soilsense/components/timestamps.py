"""
Wall-clock timestamp resolution.

Logger exports stamp rows with the local wall-clock reading of the site
(``2024-06-01 14:15:00``) and no offset. The offset in force depends on the
zone's daylight-saving rules at that instant, so it is recovered from the
zone database rather than assumed.
"""

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from soilsense.utils import RequestValidationError

_EXPLICIT_ZONE = re.compile(r'(?:[zZ]|[+\-]\d{2}:?\d{2})$')
_WALL_CLOCK = re.compile(r'^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2})(?::(\d{2}))?$')
_COMPACT_OFFSET = re.compile(r'([+\-]\d{2})(\d{2})$')


@lru_cache(maxsize=32)
def get_zone(tz_name: str) -> tzinfo:
    """
    Look up an IANA zone.

    Raises:
        RequestValidationError: If the zone name is unknown
    """
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise RequestValidationError(f"Unknown time zone: {tz_name}") from e


def _parse_explicit(stamp: str) -> Optional[datetime]:
    iso = stamp.replace('/', '-')
    if iso[-1] in 'zZ':
        iso = iso[:-1] + '+00:00'
    else:
        iso = _COMPACT_OFFSET.sub(r'\1:\2', iso)
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        return None


def wall_clock_to_utc(wanted: datetime, zone: tzinfo) -> datetime:
    """
    Convert naive wall-clock fields in ``zone`` to an aware UTC instant.

    The fields are first read as if they were UTC. That guess is rendered in
    the zone, and the gap between the wanted and rendered fields is added back
    to the guess. The offset therefore comes from the zone rules at the
    guessed instant, which also decides where stamps inside a DST gap or
    overlap land.

    Args:
        wanted: Naive datetime holding the intended local reading
        zone: Zone the reading was taken in

    Returns:
        Corrected instant in UTC
    """
    guess = wanted.replace(tzinfo=timezone.utc)
    rendered = guess.astimezone(zone).replace(tzinfo=None)
    correction: timedelta = wanted - rendered
    return guess + correction


def resolve_timestamp(raw: str, tz_name: str) -> Optional[datetime]:
    """
    Resolve a CSV timestamp cell to an absolute instant.

    Stamps carrying ``Z`` or a numeric offset are parsed as-is. Bare stamps
    must look like ``YYYY-MM-DD[ T]HH:MM[:SS]`` (``/`` is accepted as the date
    separator) and are read as wall-clock time in ``tz_name``.

    Args:
        raw: Timestamp cell text
        tz_name: IANA zone of the logger site

    Returns:
        Aware UTC datetime, or None when the stamp is unparseable
    """
    stamp = str(raw or '').strip()
    if not stamp:
        return None

    if _EXPLICIT_ZONE.search(stamp):
        return _parse_explicit(stamp)

    m = _WALL_CLOCK.match(stamp.replace('/', '-'))
    if not m:
        return None

    year, month, day, hour, minute = (int(g) for g in m.groups()[:5])
    second = int(m.group(6) or 0)
    try:
        wanted = datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None

    try:
        return wall_clock_to_utc(wanted, get_zone(tz_name))
    except OverflowError:
        # years at the edge of the datetime range, e.g. 0001-01-01
        return None


def format_utc_from(instant: datetime) -> str:
    """Format an instant as the upstream ``from`` parameter (YYYYMMDDHHMMSS, UTC)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc).strftime('%Y%m%d%H%M%S')


def local_date(instant: datetime, tz_name: str):
    """Calendar date of an instant in the given zone."""
    return instant.astimezone(get_zone(tz_name)).date()


def format_local_time(instant: datetime, tz_name: str) -> str:
    """Render an instant as zone-local 12-hour clock time, e.g. ``2:05 PM``."""
    local = instant.astimezone(get_zone(tz_name))
    hour = local.hour % 12 or 12
    suffix = 'AM' if local.hour < 12 else 'PM'
    return f"{hour}:{local.minute:02d} {suffix}"


def format_local_datetime(instant: datetime, tz_name: str) -> str:
    """Render an instant as zone-local short date and time, e.g. ``6/1/24, 2:05 PM``."""
    local = instant.astimezone(get_zone(tz_name))
    return f"{local.month}/{local.day}/{local.year % 100:02d}, {format_local_time(instant, tz_name)}"
