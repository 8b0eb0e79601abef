"""
Telegram assembler: text in, immutable Telegram out.

Runs the grammar parser, the checksum engine and the M-Bus normalizer over
one framed telegram and combines their results into a Telegram model with a
single validity verdict:

    is_valid = no syntax errors and (no checksum printed or checksum correct)

Malformed content never raises; it shows up in ``syntax_errors`` and a
false ``is_valid``. Only None or empty input returns None.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-010)

TODO:
- None
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from dsmr.src.checksum import crc_is_valid
from dsmr.src.models import MBusEvent, Telegram
from dsmr.src.normalizer import normalize
from dsmr.src.parser import parse_telegram

logger = logging.getLogger(__name__)


def decode(text: str | None, *, receive_time: datetime | None = None) -> Telegram | None:
    """Decode one P1 telegram.

    Args:
        text: Telegram text from ``/`` through the checksum line.
        receive_time: Moment of receipt; defaults to now (UTC). Injectable
            so callers and tests control the clock.

    Returns:
        The decoded Telegram, or None when *text* is None or empty.
    """
    if not text:
        return None
    if receive_time is None:
        receive_time = datetime.now(tz=UTC)

    parsed = parse_telegram(text)
    valid_crc = crc_is_valid(text)

    if parsed.unparsable:
        return Telegram(
            is_valid=False,
            is_valid_crc=valid_crc,
            receive_time=receive_time,
            syntax_errors=tuple(parsed.errors),
        )

    mbus_events = {slot: MBusEvent(**parsed.mbus[slot]) for slot in sorted(parsed.mbus)}
    mapping = normalize(mbus_events)
    errors = parsed.errors + mapping.errors

    crc = parsed.fields.get("crc")
    is_valid = not errors and (crc is None or valid_crc)
    if not is_valid:
        logger.debug(
            "Invalid telegram from %s: crc_valid=%s, %d syntax error(s)",
            parsed.fields.get("raw_ident"),
            valid_crc,
            len(errors),
        )

    return Telegram(
        **parsed.fields,
        **mapping.fields,
        is_valid=is_valid,
        is_valid_crc=valid_crc,
        receive_time=receive_time,
        mbus_events=mbus_events,
        syntax_errors=tuple(errors),
    )
