"""
Pydantic models for decoded P1 telegrams.

Defines the Telegram model produced by the decoder together with its nested
MBusEvent (one sub-meter slot) and PowerFailureEvent (one power-failure log
entry). All models are frozen: a decoded telegram is a value and cannot be
changed through attribute assignment after it is returned, and its
M-Bus slot table is a read-only mapping.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator


class MBusEvent(BaseModel):
    """One M-Bus sub-meter slot as reported in the telegram.

    Attributes:
        device_type: M-Bus device type code (3 = gas, 7 = water, ...).
        equipment_id: Sub-meter equipment identifier.
        value: Last reading.
        unit: Unit printed with the reading, None when the meter omits it.
        timestamp: Sub-meter clock at the time of the reading.
    """

    model_config = ConfigDict(frozen=True)

    device_type: int | None = None
    equipment_id: str | None = None
    value: float | None = None
    unit: str | None = None
    timestamp: datetime | None = None


class PowerFailureEvent(BaseModel):
    """A long power failure from the meter's event log.

    The meter logs the end of the failure and its duration; the start is
    derived from those two.

    Attributes:
        end_time: Moment power came back.
        duration: Length of the failure (whole seconds).
    """

    model_config = ConfigDict(frozen=True)

    end_time: datetime
    duration: timedelta

    @computed_field  # type: ignore[prop-decorator]
    @property
    def start_time(self) -> datetime:
        return self.end_time - self.duration


class Telegram(BaseModel):
    """A decoded P1 telegram.

    Fields not present in the telegram stay None. ``is_valid`` is true
    only when there were no syntax errors and the checksum is either absent
    (DSMR 2.2/3) or correct.

    Attributes:
        is_valid: Overall validity.
        is_valid_crc: Whether the printed checksum matches the content.
        raw_ident: Header line including the leading ``/``.
        equipment_brand_tag: Three-letter manufacturer tag, uppercased.
        ident: Device identification after the tag and baud rate digit.
        crc: Checksum text after ``!``, None when the meter prints none.
        receive_time: Wall clock (UTC) when the telegram was decoded.
        syntax_errors: One message per line or value that did not parse.
        mbus_events: Sub-meter slots keyed by slot number, in slot order.
    """

    model_config = ConfigDict(frozen=True)

    is_valid: bool = False
    is_valid_crc: bool = False

    raw_ident: str | None = None
    equipment_brand_tag: str | None = None
    ident: str | None = None
    crc: str | None = None
    p1_version: str | None = None
    timestamp: datetime | None = None
    receive_time: datetime | None = None

    equipment_id: str | None = None
    electricity_tariff_indicator: int | None = None
    electricity_received_low_tariff: float | None = None
    electricity_received_normal_tariff: float | None = None
    electricity_returned_low_tariff: float | None = None
    electricity_returned_normal_tariff: float | None = None
    electricity_power_received: float | None = None
    electricity_power_returned: float | None = None
    electricity_threshold: float | None = None
    electricity_switch_position: int | None = None

    power_failures: int | None = None
    long_power_failures: int | None = None
    power_failure_event_log_size: int | None = None
    power_failure_event_log: tuple[PowerFailureEvent, ...] = ()

    voltage_sags_l1: int | None = None
    voltage_sags_l2: int | None = None
    voltage_sags_l3: int | None = None
    voltage_swells_l1: int | None = None
    voltage_swells_l2: int | None = None
    voltage_swells_l3: int | None = None

    voltage_l1: float | None = None
    voltage_l2: float | None = None
    voltage_l3: float | None = None
    current_l1: float | None = None
    current_l2: float | None = None
    current_l3: float | None = None
    power_received_l1: float | None = None
    power_received_l2: float | None = None
    power_received_l3: float | None = None
    power_returned_l1: float | None = None
    power_returned_l2: float | None = None
    power_returned_l3: float | None = None

    message_code: str | None = None
    message: str | None = None

    mbus_events: Mapping[int, MBusEvent] = Field(default_factory=dict, validate_default=True)

    gas_equipment_id: str | None = None
    gas_timestamp: datetime | None = None
    gas_m3: float | None = None

    water_equipment_id: str | None = None
    water_timestamp: datetime | None = None
    water_m3: float | None = None

    thermal_heat_equipment_id: str | None = None
    thermal_heat_timestamp: datetime | None = None
    thermal_heat_gj: float | None = None

    thermal_cold_equipment_id: str | None = None
    thermal_cold_timestamp: datetime | None = None
    thermal_cold_gj: float | None = None

    slave_e_meter_equipment_id: str | None = None
    slave_e_meter_timestamp: datetime | None = None
    slave_e_meter_kwh: float | None = None

    syntax_errors: tuple[str, ...] = ()

    @field_validator("mbus_events")
    @classmethod
    def mbus_events_read_only(cls, v: Mapping[int, MBusEvent]) -> Mapping[int, MBusEvent]:
        """Wrap the slot table so it cannot be changed through the mapping."""
        return MappingProxyType(dict(v))

    @field_serializer("mbus_events")
    def serialize_mbus_events(self, v: Mapping[int, MBusEvent]) -> dict[int, MBusEvent]:
        return dict(v)
