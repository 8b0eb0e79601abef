"""
Meter clock timestamp resolution.

P1 timestamps are ``YYMMDDhhmmss`` followed by an optional DST flag: ``S``
(summer, UTC+02:00) or ``W`` (winter, UTC+01:00). Without a flag, as on
DSMR 2.2/3 meters, the local time is resolved with the Europe/Amsterdam
zone rules.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

METER_ZONE = ZoneInfo("Europe/Amsterdam")
SUMMER_TIME = timezone(timedelta(hours=2))
WINTER_TIME = timezone(timedelta(hours=1))

_TIMESTAMP_RE = re.compile(
    r"([0-9]{2})([01][0-9])([0-3][0-9])([0-2][0-9])([0-5][0-9])([0-5][0-9])([SsWw]?)"
)

_DST_FLAGS: dict[str, tzinfo] = {
    "S": SUMMER_TIME,
    "W": WINTER_TIME,
}


def parse_timestamp(text: str | None) -> datetime | None:
    """Parse a meter timestamp into an aware datetime.

    Trailing characters after the timestamp are ignored, so ``190324151444xxx``
    parses like ``190324151444`` (zone rules, no flag).

    Args:
        text: Timestamp text as found inside an OBIS value group.

    Returns:
        The aware datetime, or None for None, empty, unmatched or
        calendar-invalid input (e.g. month 19).
    """
    if not text:
        return None
    match = _TIMESTAMP_RE.match(text)
    if match is None:
        return None

    yy, month, day, hour, minute, second, flag = match.groups()
    tz = _DST_FLAGS.get(flag.upper(), METER_ZONE)
    try:
        return datetime(
            2000 + int(yy),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            tzinfo=tz,
        )
    except ValueError:
        return None
