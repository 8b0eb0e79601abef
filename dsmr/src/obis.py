"""
DSMR P1 OBIS reference map -- single source of truth.

Maps every OBIS reference the parser understands to the Telegram field it
fills and the value grammar it expects. References that are not in this map
are ignored by the parser: the P1 protocol is extensible and vendor-specific
lines must not break decoding.

M-Bus sub-meter lines carry their slot number in the second position
(``0-<slot>:24.2.1``); they are looked up by the part after the colon and
collected per slot.

References:
    - DSMR 5.0.2 P1 Companion Standard (Netbeheer Nederland)
    - DSMR 2.2 / 3.0 P1 Companion Standard

CHANGELOG:
- 2026-02-14: Initial creation (STORY-006)

TODO:
- None
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Value grammars
# ---------------------------------------------------------------------------

VERSION = "VERSION"
"""Two digits rendered as ``"X.Y"`` (``50`` -> ``"5.0"``)."""

TIMESTAMP = "TIMESTAMP"
HEX_TEXT = "HEX_TEXT"
"""Hex-encoded UTF-8 text; an empty group decodes to ``""``."""

INTEGER = "INTEGER"
QUANTITY = "QUANTITY"
"""Decimal number followed by ``*unit``."""

POWER_FAILURE_LOG = "POWER_FAILURE_LOG"
MBUS_DEVICE_TYPE = "MBUS_DEVICE_TYPE"
MBUS_EQUIPMENT_ID = "MBUS_EQUIPMENT_ID"
MBUS_READING = "MBUS_READING"
"""``(timestamp)(value[*unit])``; some DSMR 4 meters omit the unit."""

MBUS_LEGACY_READING = "MBUS_LEGACY_READING"
"""DSMR 2.2/3 ``(timestamp)(..)(..)(..)(reference)(unit)(value)``."""

POWER_FAILURE_EVENT_REFERENCE = "0-0:96.7.19"

MBUS_SLOTS = range(1, 5)


# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ObisDef:
    """Definition of a single OBIS register line.

    Attributes:
        reference: OBIS reference (``"1-0:1.8.1"``), or for M-Bus lines the
            part after the slot colon (``"24.2.1"``).
        field: Target attribute name on the Telegram (or MBusEvent for
            M-Bus definitions).
        kind: Value grammar, one of the module-level kind constants.
        units: Accepted units for ``QUANTITY`` values.
        description: Free-text description of the register.
    """

    reference: str
    field: str
    kind: str
    units: tuple[str, ...] = ()
    description: str = ""


# ---------------------------------------------------------------------------
# Header and general registers
# ---------------------------------------------------------------------------

_GENERAL: list[ObisDef] = [
    ObisDef("1-3:0.2.8", "p1_version", VERSION, description="P1 protocol version"),
    ObisDef("0-0:1.0.0", "timestamp", TIMESTAMP, description="Meter clock"),
    ObisDef("0-0:96.1.1", "equipment_id", HEX_TEXT, description="Electricity meter id"),
    ObisDef(
        "0-0:96.14.0",
        "electricity_tariff_indicator",
        INTEGER,
        description="Active tariff (1 = low, 2 = normal)",
    ),
    ObisDef("0-0:96.3.10", "electricity_switch_position", INTEGER),
    ObisDef(
        "0-0:17.0.0",
        "electricity_threshold",
        QUANTITY,
        ("kW", "A"),
        description="Actual threshold electricity",
    ),
    ObisDef("0-0:96.13.1", "message_code", HEX_TEXT),
    ObisDef("0-0:96.13.0", "message", HEX_TEXT, description="Text message, max 1024 chars"),
]

# ---------------------------------------------------------------------------
# Energy counters and instantaneous power
# ---------------------------------------------------------------------------

_ENERGY: list[ObisDef] = [
    ObisDef("1-0:1.8.1", "electricity_received_low_tariff", QUANTITY, ("kWh",)),
    ObisDef("1-0:1.8.2", "electricity_received_normal_tariff", QUANTITY, ("kWh",)),
    ObisDef("1-0:2.8.1", "electricity_returned_low_tariff", QUANTITY, ("kWh",)),
    ObisDef("1-0:2.8.2", "electricity_returned_normal_tariff", QUANTITY, ("kWh",)),
    ObisDef("1-0:1.7.0", "electricity_power_received", QUANTITY, ("kW",)),
    ObisDef("1-0:2.7.0", "electricity_power_returned", QUANTITY, ("kW",)),
]

# ---------------------------------------------------------------------------
# Power quality: failures, sags and swells
# ---------------------------------------------------------------------------

_POWER_QUALITY: list[ObisDef] = [
    ObisDef("0-0:96.7.21", "power_failures", INTEGER, description="Any phase"),
    ObisDef("0-0:96.7.9", "long_power_failures", INTEGER, description="Any phase"),
    ObisDef("1-0:99.97.0", "power_failure_event_log", POWER_FAILURE_LOG),
    ObisDef("1-0:32.32.0", "voltage_sags_l1", INTEGER),
    ObisDef("1-0:52.32.0", "voltage_sags_l2", INTEGER),
    ObisDef("1-0:72.32.0", "voltage_sags_l3", INTEGER),
    ObisDef("1-0:32.36.0", "voltage_swells_l1", INTEGER),
    ObisDef("1-0:52.36.0", "voltage_swells_l2", INTEGER),
    ObisDef("1-0:72.36.0", "voltage_swells_l3", INTEGER),
]

# ---------------------------------------------------------------------------
# Per-phase instantaneous values
# ---------------------------------------------------------------------------

_PHASES: list[ObisDef] = [
    ObisDef("1-0:32.7.0", "voltage_l1", QUANTITY, ("V",)),
    ObisDef("1-0:52.7.0", "voltage_l2", QUANTITY, ("V",)),
    ObisDef("1-0:72.7.0", "voltage_l3", QUANTITY, ("V",)),
    ObisDef("1-0:31.7.0", "current_l1", QUANTITY, ("A",)),
    ObisDef("1-0:51.7.0", "current_l2", QUANTITY, ("A",)),
    ObisDef("1-0:71.7.0", "current_l3", QUANTITY, ("A",)),
    ObisDef("1-0:21.7.0", "power_received_l1", QUANTITY, ("kW",)),
    ObisDef("1-0:41.7.0", "power_received_l2", QUANTITY, ("kW",)),
    ObisDef("1-0:61.7.0", "power_received_l3", QUANTITY, ("kW",)),
    ObisDef("1-0:22.7.0", "power_returned_l1", QUANTITY, ("kW",)),
    ObisDef("1-0:42.7.0", "power_returned_l2", QUANTITY, ("kW",)),
    ObisDef("1-0:62.7.0", "power_returned_l3", QUANTITY, ("kW",)),
]

# ---------------------------------------------------------------------------
# M-Bus sub-meters (slot number stripped from the reference)
# ---------------------------------------------------------------------------

MBUS_DEFINITIONS: list[ObisDef] = [
    ObisDef("24.1.0", "device_type", MBUS_DEVICE_TYPE),
    ObisDef("96.1.0", "equipment_id", MBUS_EQUIPMENT_ID),
    ObisDef("24.2.1", "value", MBUS_READING, description="Last 5-minute reading"),
    ObisDef("24.2.3", "value", MBUS_READING, description="Reading, not temperature corrected"),
    ObisDef("24.3.0", "value", MBUS_LEGACY_READING, description="Hourly reading (DSMR 2.2/3)"),
]

# ---------------------------------------------------------------------------
# Public lookup tables
# ---------------------------------------------------------------------------

ALL_DEFINITIONS: list[ObisDef] = _GENERAL + _ENERGY + _POWER_QUALITY + _PHASES
"""Flat list of every non-M-Bus definition."""

DEFINITIONS_BY_REFERENCE: dict[str, ObisDef] = {d.reference: d for d in ALL_DEFINITIONS}
MBUS_DEFINITIONS_BY_SUFFIX: dict[str, ObisDef] = {d.reference: d for d in MBUS_DEFINITIONS}

_MBUS_REFERENCE_RE = re.compile(r"0-(\d+):(.+)")


def lookup(reference: str) -> tuple[ObisDef, int | None] | None:
    """Find the definition for an OBIS reference.

    Args:
        reference: Reference as it appears at the start of a telegram line.

    Returns:
        ``(definition, slot)`` where *slot* is the M-Bus slot number for
        sub-meter lines and None otherwise, or None for an unknown reference.
    """
    definition = DEFINITIONS_BY_REFERENCE.get(reference)
    if definition is not None:
        return definition, None

    match = _MBUS_REFERENCE_RE.fullmatch(reference)
    if match is None:
        return None
    slot = int(match.group(1))
    definition = MBUS_DEFINITIONS_BY_SUFFIX.get(match.group(2))
    if definition is None or slot not in MBUS_SLOTS:
        return None
    return definition, slot
