"""
CRC-16 checksum handling for P1 telegrams.

DSMR 4 and later end every telegram with ``!`` followed by four hex digits:
the CRC-16/ARC (polynomial 0x8005 reflected, initial value 0, no final XOR)
of every byte from the leading ``/`` through the ``!`` inclusive, rendered
as uppercase hex. Older meters end the telegram with a bare ``!``.

All functions are pure and safe to call from any thread.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import re

import crcmod.predefined

_crc16 = crcmod.predefined.mkPredefinedCrcFun("crc-16")

_CHECKSUM_RE = re.compile(r"!([0-9A-Fa-f]{4})")


def _frame_bounds(telegram: str | None) -> tuple[int, int] | None:
    """Return the indexes of the leading ``/`` and the first ``!`` after it."""
    if not telegram:
        return None
    start = telegram.find("/")
    if start < 0:
        return None
    end = telegram.find("!", start)
    if end < 0:
        return None
    return start, end


def calculate_crc(telegram: str | None) -> int | None:
    """Compute the CRC-16/ARC over the ``/``...``!`` span of a telegram.

    Args:
        telegram: Full telegram text.

    Returns:
        The 16-bit checksum, or None when the text has no ``/`` or no ``!``.
    """
    bounds = _frame_bounds(telegram)
    if bounds is None:
        return None
    start, end = bounds
    return _crc16(telegram[start : end + 1].encode("utf-8"))  # type: ignore[index]


def format_crc(value: int) -> str:
    """Render a checksum the way meters print it (four uppercase hex digits)."""
    return f"{value:04X}"


def extract_crc(telegram: str | None) -> str | None:
    """Return the four hex digits following ``!``, or None if there are none."""
    bounds = _frame_bounds(telegram)
    if bounds is None:
        return None
    match = _CHECKSUM_RE.match(telegram, bounds[1])  # type: ignore[arg-type]
    return match.group(1) if match else None


def crc_is_valid(telegram: str | None) -> bool:
    """Check the checksum printed in the telegram against its content.

    The comparison is case-sensitive: meters print uppercase hex, so a
    lowercase checksum never validates. Never raises.
    """
    expected = extract_crc(telegram)
    if expected is None:
        return False
    actual = calculate_crc(telegram)
    return actual is not None and format_crc(actual) == expected


def fix_crc(telegram: str) -> str:
    """Rewrite the checksum field of a telegram with the correct value.

    Used to build test fixtures from hand-edited telegrams. A missing
    checksum after ``!`` is inserted; an existing one is replaced.

    Raises:
        ValueError: If the text has no ``/``...``!`` frame.
    """
    bounds = _frame_bounds(telegram)
    if bounds is None:
        raise ValueError("telegram has no '/' ... '!' frame to checksum")
    _, end = bounds
    crc = format_crc(calculate_crc(telegram))  # type: ignore[arg-type]
    match = _CHECKSUM_RE.match(telegram, end)
    tail_start = match.end() if match else end + 1
    return telegram[: end + 1] + crc + telegram[tail_start:]
