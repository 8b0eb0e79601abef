"""
Line-oriented grammar parser for P1 telegram text.

A telegram looks like::

    /ISk5\\2MT382-1000          <- header: brand tag, baud digit, ident
                                <- blank line
    1-3:0.2.8(50)               <- OBIS reference + one or more (value) groups
    0-0:1.0.0(101209113020W)
    ...
    !EF2F                       <- end marker with optional CRC-16

Each body line is dispatched through the OBIS table in ``dsmr.src.obis`` and
its value groups are converted according to the definition's grammar. The
parser is tolerant: a bad line is recorded in ``errors`` and parsing carries
on with the next one, so the caller gets everything that could be recovered.
Unknown references are skipped silently.

DSMR 2.2 meters print the gas reading on a continuation line that starts
with ``(``; such lines are glued onto the line before them.

This module has no I/O and no clock.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-008)

TODO:
- None
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from dsmr.src import obis
from dsmr.src.models import PowerFailureEvent
from dsmr.src.timestamps import parse_timestamp

logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(
    r"/(?P<brand>[A-Za-z]{3})(?P<baud>[0-9A-Za-z])(?:\\[0-9]|\\|\s)?(?P<ident>.*)"
)
_LINE_RE = re.compile(r"(?P<reference>\d+-\d+:\d+\.\d+\.\d+)(?P<groups>(?:\([^()]*\))+)")
_GROUP_RE = re.compile(r"\(([^()]*)\)")
_CHECKSUM_LINE_RE = re.compile(r"!(?P<crc>[0-9A-Fa-f]{4})?")

_DIGITS_RE = re.compile(r"[0-9]+")
_QUANTITY_RE = re.compile(r"(?P<number>[-+]?[0-9]+(?:\.[0-9]+)?)\*(?P<unit>.+)")
_READING_RE = re.compile(r"(?P<number>[0-9]+(?:\.[0-9]+)?)(?:\*(?P<unit>.+))?")
_NUMBER_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?")
_SECONDS_RE = re.compile(r"(?P<seconds>[0-9]+)\*s")
_TIMESTAMP_VALUE_RE = re.compile(r"[0-9]{12}[SsWw]?")


@dataclass(slots=True)
class ParsedTelegram:
    """Everything the parser recovered from one telegram.

    Attributes:
        fields: Telegram attribute name -> converted value.
        mbus: M-Bus slot number -> MBusEvent attribute name -> value.
        errors: One message per line or value that did not parse.
        unparsable: True when no header was found at all.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    mbus: dict[int, dict[str, Any]] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    unparsable: bool = False

    def add_error(self, message: str) -> None:
        logger.debug("Telegram syntax error: %s", message)
        self.errors.append(message)


# ---------------------------------------------------------------------------
# Value converters (raise ValueError on grammar mismatch)
# ---------------------------------------------------------------------------


def _single(groups: list[str]) -> str:
    if len(groups) != 1:
        raise ValueError(f"expected 1 value group, got {len(groups)}")
    return groups[0]


def _to_int(value: str) -> int:
    if not _DIGITS_RE.fullmatch(value):
        raise ValueError(f"not an integer: {value!r}")
    return int(value)


def _to_timestamp(value: str) -> datetime:
    parsed = parse_timestamp(value) if _TIMESTAMP_VALUE_RE.fullmatch(value) else None
    if parsed is None:
        raise ValueError(f"not a timestamp: {value!r}")
    return parsed


def _to_text(value: str) -> str:
    """Decode hex-encoded UTF-8 text, dropping surrounding whitespace."""
    try:
        return bytes.fromhex(value).decode("utf-8").strip()
    except ValueError as exc:
        raise ValueError(f"not hex encoded text: {value!r}") from exc


def _to_version(value: str) -> str:
    if len(value) < 2 or not _DIGITS_RE.fullmatch(value):
        raise ValueError(f"not a protocol version: {value!r}")
    return f"{value[0]}.{value[1:]}"


def _to_quantity(value: str, units: tuple[str, ...]) -> float:
    match = _QUANTITY_RE.fullmatch(value)
    if match is None:
        raise ValueError(f"not a number with unit: {value!r}")
    if match.group("unit") not in units:
        raise ValueError(f"unexpected unit {match.group('unit')!r}, expected {'/'.join(units)}")
    return float(match.group("number"))


def _to_power_failure_log(groups: list[str]) -> tuple[int, list[PowerFailureEvent]]:
    if len(groups) < 2 or groups[1] != obis.POWER_FAILURE_EVENT_REFERENCE:
        raise ValueError("power failure log must start with (count)(0-0:96.7.19)")
    size = _to_int(groups[0])
    pairs = groups[2:]
    if len(pairs) % 2:
        raise ValueError("power failure log entries must be (timestamp)(duration) pairs")

    events = []
    for end_text, duration_text in zip(pairs[::2], pairs[1::2], strict=True):
        seconds = _SECONDS_RE.fullmatch(duration_text)
        if seconds is None:
            raise ValueError(f"power failure duration must be in seconds: {duration_text!r}")
        events.append(
            PowerFailureEvent(
                end_time=_to_timestamp(end_text),
                duration=timedelta(seconds=int(seconds.group("seconds"))),
            )
        )
    if size != len(events):
        raise ValueError(f"power failure log announces {size} entries, found {len(events)}")
    return size, events


def _to_reading(groups: list[str]) -> dict[str, Any]:
    if len(groups) != 2:
        raise ValueError(f"expected (timestamp)(value), got {len(groups)} groups")
    match = _READING_RE.fullmatch(groups[1])
    if match is None:
        raise ValueError(f"not a meter reading: {groups[1]!r}")
    return {
        "timestamp": _to_timestamp(groups[0]),
        "value": float(match.group("number")),
        "unit": match.group("unit"),
    }


def _to_legacy_reading(groups: list[str]) -> dict[str, Any]:
    if len(groups) != 7:
        raise ValueError(f"expected 7 value groups for an hourly reading, got {len(groups)}")
    if not _NUMBER_RE.fullmatch(groups[6]):
        raise ValueError(f"not a meter reading: {groups[6]!r}")
    return {
        "timestamp": _to_timestamp(groups[0]),
        "value": float(groups[6]),
        "unit": groups[5] or None,
    }


# ---------------------------------------------------------------------------
# Line handling
# ---------------------------------------------------------------------------


def _logical_lines(lines: Iterable[str]) -> Iterator[str]:
    """Yield non-blank lines with ``(``-continuations joined to their predecessor."""
    pending: str | None = None
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if pending is not None and line.startswith("("):
            pending += line
            continue
        if pending is not None:
            yield pending
        pending = line
    if pending is not None:
        yield pending


def _parse_header(line: str, result: ParsedTelegram) -> None:
    result.fields["raw_ident"] = line
    match = _HEADER_RE.fullmatch(line)
    if match is None:
        result.add_error(f"unrecognised identification line {line!r}")
        return
    result.fields["equipment_brand_tag"] = match.group("brand").upper()
    result.fields["ident"] = match.group("ident")


def _parse_checksum_line(line: str, result: ParsedTelegram) -> None:
    match = _CHECKSUM_LINE_RE.fullmatch(line)
    if match is None:
        result.fields["crc"] = line[1:]
        result.add_error(f"malformed checksum line {line!r}")
        return
    result.fields["crc"] = match.group("crc")


def _apply(definition: obis.ObisDef, slot: int | None, groups: list[str], result: ParsedTelegram) -> None:
    """Convert the value groups of one line and store them in *result*."""
    kind = definition.kind
    if kind == obis.VERSION:
        result.fields[definition.field] = _to_version(_single(groups))
    elif kind == obis.TIMESTAMP:
        result.fields[definition.field] = _to_timestamp(_single(groups))
    elif kind == obis.HEX_TEXT:
        result.fields[definition.field] = _to_text(_single(groups))
    elif kind == obis.INTEGER:
        result.fields[definition.field] = _to_int(_single(groups))
    elif kind == obis.QUANTITY:
        result.fields[definition.field] = _to_quantity(_single(groups), definition.units)
    elif kind == obis.POWER_FAILURE_LOG:
        size, events = _to_power_failure_log(groups)
        result.fields["power_failure_event_log_size"] = size
        result.fields["power_failure_event_log"] = events
    else:
        assert slot is not None
        event = result.mbus.setdefault(slot, {})
        if kind == obis.MBUS_DEVICE_TYPE:
            event["device_type"] = _to_int(_single(groups))
        elif kind == obis.MBUS_EQUIPMENT_ID:
            event["equipment_id"] = _to_text(_single(groups))
        elif kind == obis.MBUS_READING:
            event.update(_to_reading(groups))
        elif kind == obis.MBUS_LEGACY_READING:
            event.update(_to_legacy_reading(groups))
        else:
            raise ValueError(f"unsupported value kind {kind!r}")


def _parse_data_line(line: str, result: ParsedTelegram) -> None:
    match = _LINE_RE.fullmatch(line)
    if match is None:
        result.add_error(f"malformed line {line!r}")
        return

    reference = match.group("reference")
    found = obis.lookup(reference)
    if found is None:
        logger.debug("Ignoring unknown OBIS reference %s", reference)
        return

    definition, slot = found
    groups = _GROUP_RE.findall(match.group("groups"))
    try:
        _apply(definition, slot, groups, result)
    except ValueError as exc:
        result.add_error(f"{reference}: {exc}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse_telegram(text: str) -> ParsedTelegram:
    """Parse telegram text into raw fields, M-Bus slots and errors.

    Args:
        text: One framed telegram, line terminators included.

    Returns:
        A ParsedTelegram. When no ``/`` header is present at all it is
        flagged ``unparsable`` and carries nothing but the error.
    """
    result = ParsedTelegram()
    start = text.find("/")
    if start < 0:
        result.unparsable = True
        result.add_error("no identification line ('/') found")
        return result
    if text[:start].strip():
        result.add_error("unexpected text before the identification line")

    header, *body = text[start:].splitlines()
    _parse_header(header.strip(), result)

    end_seen = False
    for line in _logical_lines(body):
        if end_seen:
            result.add_error(f"unexpected line after the checksum {line!r}")
        elif line.startswith("!"):
            _parse_checksum_line(line, result)
            end_seen = True
        else:
            _parse_data_line(line, result)

    if not end_seen:
        result.add_error("telegram has no '!' end line")
    return result
