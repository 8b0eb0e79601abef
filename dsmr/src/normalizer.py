"""
Pure normalizer that maps M-Bus sub-meter slots to named commodities.

A P1 telegram reports up to four M-Bus sub-meters in numbered slots; which
slot holds the gas meter depends on how the installer wired it. The
normalizer walks the slots in slot order and, based on each slot's M-Bus
device type, copies its equipment id, timestamp and reading into the
matching commodity attributes of the Telegram.

The first slot of a commodity wins; later slots of the same type stay
visible in the slot table only. A reading whose unit differs from the one
expected for its commodity is reported as a syntax error but still mapped.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from dsmr.src.models import MBusEvent

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Device type -> commodity
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Commodity:
    """Telegram attributes filled from one kind of sub-meter.

    Attributes:
        prefix: Attribute prefix on the Telegram (``"gas"``).
        value_field: Attribute receiving the reading (``"gas_m3"``).
        unit: Unit the reading must be reported in.
    """

    prefix: str
    value_field: str
    unit: str


SLAVE_E_METER = Commodity("slave_e_meter", "slave_e_meter_kwh", "kWh")
GAS = Commodity("gas", "gas_m3", "m3")
WATER = Commodity("water", "water_m3", "m3")
THERMAL_HEAT = Commodity("thermal_heat", "thermal_heat_gj", "GJ")
THERMAL_COLD = Commodity("thermal_cold", "thermal_cold_gj", "GJ")

DEVICE_TYPES: dict[int, Commodity] = {
    0x02: SLAVE_E_METER,
    0x03: GAS,
    0x04: THERMAL_HEAT,  # heat, outlet
    0x06: WATER,  # warm water
    0x07: WATER,
    0x0A: THERMAL_COLD,  # cooling, outlet
    0x0B: THERMAL_COLD,  # cooling, inlet
    0x0C: THERMAL_HEAT,  # heat, inlet
}
"""Maps M-Bus device type code -> Commodity (EN 13757-3)."""


@dataclass(slots=True)
class MBusMapping:
    """Result of normalizing the slot table.

    Attributes:
        fields: Telegram attribute name -> value.
        errors: Unit mismatch messages.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


def normalize(mbus_events: Mapping[int, MBusEvent]) -> MBusMapping:
    """Map M-Bus slots to commodity attributes.

    Args:
        mbus_events: Slot number -> MBusEvent, in any order.

    Returns:
        The commodity attributes to set on the Telegram and any unit
        mismatch errors.
    """
    result = MBusMapping()
    seen: set[str] = set()

    for slot in sorted(mbus_events):
        event = mbus_events[slot]
        commodity = DEVICE_TYPES.get(event.device_type) if event.device_type is not None else None
        if commodity is None:
            logger.debug("M-Bus slot %d: unmapped device type %s", slot, event.device_type)
            continue
        if commodity.prefix in seen:
            logger.debug("M-Bus slot %d: %s already mapped from a lower slot", slot, commodity.prefix)
            continue
        seen.add(commodity.prefix)

        if event.unit is not None and event.unit != commodity.unit:
            result.errors.append(
                f"M-Bus slot {slot}: {commodity.prefix} reading in {event.unit!r}, "
                f"expected {commodity.unit!r}"
            )

        result.fields[f"{commodity.prefix}_equipment_id"] = event.equipment_id
        result.fields[f"{commodity.prefix}_timestamp"] = event.timestamp
        result.fields[commodity.value_field] = event.value

    return result
