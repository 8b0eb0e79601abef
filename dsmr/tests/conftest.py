"""
Shared test fixtures for the DSMR P1 decoder tests.

Provides real meter telegrams (with their original, verified CRC-16
checksums) and environment variable fixtures for ReaderSettings tests.
All reader env vars are cleaned before each test to ensure isolation.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path

import pytest

# All ReaderSettings environment variable names, used for cleanup.
_ALL_READER_ENV_VARS = (
    "P1_DEVICE",
    "P1_BAUDRATE",
    "P1_READ_TIMEOUT_S",
    "END_OF_RECORD_REGEX",
    "MAX_RECORD_SIZE",
    "HISTORY_SIZE",
    "KEEP_INVALID",
    "HEALTH_PATH",
    "LOG_LEVEL",
)

# ---------------------------------------------------------------------------
# Telegrams
# ---------------------------------------------------------------------------

DSMR50_EXAMPLE = (
    "\r\n"
    "/ISk5\\2MT382-1000\r\n"
    "\r\n"
    "1-3:0.2.8(50)\r\n"
    "0-0:1.0.0(101209113020W)\r\n"
    "0-0:96.1.1(4B384547303034303436333935353037)\r\n"
    "1-0:1.8.1(123456.789*kWh)\r\n"
    "1-0:1.8.2(123456.789*kWh)\r\n"
    "1-0:2.8.1(123456.789*kWh)\r\n"
    "1-0:2.8.2(123456.789*kWh)\r\n"
    "0-0:96.14.0(0002)\r\n"
    "1-0:1.7.0(01.193*kW)\r\n"
    "1-0:2.7.0(00.000*kW)\r\n"
    "0-0:96.7.21(00004)\r\n"
    "0-0:96.7.9(00002)\r\n"
    "1-0:99.97.0(2)(0-0:96.7.19)(101208152415W)(0000000240*s)(101208151004W)(0000000301*s)\r\n"
    "1-0:32.32.0(00002)\r\n"
    "1-0:52.32.0(00001)\r\n"
    "1-0:72.32.0(00000)\r\n"
    "1-0:32.36.0(00000)\r\n"
    "1-0:52.36.0(00003)\r\n"
    "1-0:72.36.0(00000)\r\n"
    "0-0:96.13.0(303132333435363738393A3B3C3D3E3F303132333435363738393A3B3C3D3E3F30313233343536373839"
    "3A3B3C3D3E3F303132333435363738393A3B3C3D3E3F303132333435363738393A3B3C3D3E3F)\r\n"
    "1-0:32.7.0(220.1*V)\r\n"
    "1-0:52.7.0(220.2*V)\r\n"
    "1-0:72.7.0(220.3*V)\r\n"
    "1-0:31.7.0(001*A)\r\n"
    "1-0:51.7.0(002*A)\r\n"
    "1-0:71.7.0(003*A)\r\n"
    "1-0:21.7.0(01.111*kW)\r\n"
    "1-0:41.7.0(02.222*kW)\r\n"
    "1-0:61.7.0(03.333*kW)\r\n"
    "1-0:22.7.0(04.444*kW)\r\n"
    "1-0:42.7.0(05.555*kW)\r\n"
    "1-0:62.7.0(06.666*kW)\r\n"
    "0-1:24.1.0(003)\r\n"
    "0-1:96.1.0(3232323241424344313233343536373839)\r\n"
    "0-1:24.2.1(101209112500W)(12785.123*m3)\r\n"
    "!E47C\r\n"
    "\r\n"
)
"""DSMR 5.0 companion standard example with its correct checksum."""

DSMR42_WITH_GAS = (
    "/XMX5LGBBFG1009325446\r\n"
    "\r\n"
    "1-3:0.2.8(42)\r\n"
    "0-0:1.0.0(190905214003S)\r\n"
    "0-0:96.1.1(4530303331303033323339343536373136)\r\n"
    "1-0:1.8.1(003235.689*kWh)\r\n"
    "1-0:1.8.2(006777.240*kWh)\r\n"
    "1-0:2.8.1(000000.313*kWh)\r\n"
    "1-0:2.8.2(000000.000*kWh)\r\n"
    "0-0:96.14.0(0002)\r\n"
    "1-0:1.7.0(00.374*kW)\r\n"
    "1-0:2.7.0(00.000*kW)\r\n"
    "0-0:96.7.21(00003)\r\n"
    "0-0:96.7.9(00001)\r\n"
    "1-0:99.97.0(1)(0-0:96.7.19)(170117065912W)(0000009606*s)\r\n"
    "1-0:32.32.0(00000)\r\n"
    "1-0:32.36.0(00000)\r\n"
    "0-0:96.13.1()\r\n"
    "0-0:96.13.0()\r\n"
    "1-0:31.7.0(002*A)\r\n"
    "1-0:21.7.0(00.374*kW)\r\n"
    "1-0:22.7.0(00.000*kW)\r\n"
    "0-1:24.1.0(003)\r\n"
    "0-1:96.1.0(4730303139333430333135333730363136)\r\n"
    "0-1:24.2.1(190905210000S)(01091.352*m3)\r\n"
    "!BB2A\r\n"
)
"""Landis+Gyr E350 (DSMR 4.2) with a gas meter in slot 1."""

DSMR42_GAS_WITHOUT_UNIT = (
    "/XMX5LGBBFG1009089532\r\n"
    "\r\n"
    "1-3:0.2.8(42)\r\n"
    "0-0:1.0.0(000101010000W)\r\n"
    "0-0:96.1.1(4530303330303033313131393539373135)\r\n"
    "1-0:1.8.1(000024.487*kWh)\r\n"
    "1-0:1.8.2(000030.536*kWh)\r\n"
    "1-0:2.8.1(000000.528*kWh)\r\n"
    "1-0:2.8.2(000000.000*kWh)\r\n"
    "0-0:96.14.0(0002)\r\n"
    "1-0:1.7.0(00.000*kW)\r\n"
    "1-0:2.7.0(00.000*kW)\r\n"
    "0-0:96.7.21(00116)\r\n"
    "0-0:96.7.9(00000)\r\n"
    "1-0:99.97.0(0)(0-0:96.7.19)\r\n"
    "1-0:32.32.0(00011)\r\n"
    "1-0:52.32.0(00028)\r\n"
    "1-0:72.32.0(00028)\r\n"
    "1-0:32.36.0(00000)\r\n"
    "1-0:52.36.0(00000)\r\n"
    "1-0:72.36.0(00000)\r\n"
    "0-0:96.13.1()\r\n"
    "0-0:96.13.0()\r\n"
    "1-0:31.7.0(000*A)\r\n"
    "1-0:51.7.0(000*A)\r\n"
    "1-0:71.7.0(000*A)\r\n"
    "1-0:21.7.0(00.004*kW)\r\n"
    "1-0:41.7.0(00.000*kW)\r\n"
    "1-0:61.7.0(00.000*kW)\r\n"
    "1-0:22.7.0(00.000*kW)\r\n"
    "1-0:42.7.0(00.000*kW)\r\n"
    "1-0:62.7.0(00.000*kW)\r\n"
    "0-1:24.1.0(003)\r\n"
    "0-1:96.1.0(4730303032333430313537323637333134)\r\n"
    "0-1:24.2.1(000101010000W)(0000000000)\r\n"
    "!6D3C\r\n"
)
"""Landis+Gyr E350 (DSMR 4.2) whose gas reading carries no unit."""

KAIFA_GAS_IN_SLOT_2 = (
    "/KFM5KAIFA-METER\r\n"
    "\r\n"
    "1-3:0.2.8(42)\r\n"
    "0-0:1.0.0(200410102433S)\r\n"
    "0-0:96.1.1(4530313233343536373839)\r\n"
    "1-0:1.8.1(003000.497*kWh)\r\n"
    "1-0:1.8.2(001000.248*kWh)\r\n"
    "1-0:2.8.1(001000.458*kWh)\r\n"
    "1-0:2.8.2(003000.394*kWh)\r\n"
    "0-0:96.14.0(0002)\r\n"
    "1-0:1.7.0(00.105*kW)\r\n"
    "1-0:2.7.0(00.000*kW)\r\n"
    "0-0:96.7.21(00000)\r\n"
    "0-0:96.7.9(00000)\r\n"
    "1-0:99.97.0(1)(0-0:96.7.19)(000101000001W)(2147483647*s)\r\n"
    "1-0:32.32.0(00000)\r\n"
    "1-0:32.36.0(00000)\r\n"
    "0-0:96.13.1()\r\n"
    "0-0:96.13.0()\r\n"
    "1-0:31.7.0(001*A)\r\n"
    "1-0:21.7.0(00.105*kW)\r\n"
    "1-0:22.7.0(00.000*kW)\r\n"
    "0-2:24.1.0(003)\r\n"
    "0-2:96.1.0(4530313233343536373839)\r\n"
    "0-2:24.2.1(200410100000S)(02000.671*m3)\r\n"
    "!DE3E\r\n"
)
"""Kaifa (DSMR 4.2) with the gas meter wired to slot 2."""

DSMR50_POWER_FAILURES = (
    "/ISK5\\2M550T-1012\r\n"
    "\r\n"
    "1-3:0.2.8(50)\r\n"
    "0-0:1.0.0(220528151729S)\r\n"
    "0-0:96.1.1(4530303434303037313331363530363138)\r\n"
    "1-0:1.8.1(016366.258*kWh)\r\n"
    "1-0:1.8.2(013315.593*kWh)\r\n"
    "1-0:2.8.1(002435.025*kWh)\r\n"
    "1-0:2.8.2(006153.962*kWh)\r\n"
    "0-0:96.14.0(0001)\r\n"
    "1-0:1.7.0(00.000*kW)\r\n"
    "1-0:2.7.0(00.098*kW)\r\n"
    "0-0:96.7.21(00005)\r\n"
    "0-0:96.7.9(00004)\r\n"
    "1-0:99.97.0(2)(0-0:96.7.19)(180417201458S)(0000000236*s)(220525094346S)(0000002936*s)\r\n"
    "1-0:32.32.0(00004)\r\n"
    "1-0:52.32.0(00003)\r\n"
    "1-0:72.32.0(00003)\r\n"
    "1-0:32.36.0(00001)\r\n"
    "1-0:52.36.0(00001)\r\n"
    "1-0:72.36.0(00001)\r\n"
    "0-0:96.13.0()\r\n"
    "1-0:32.7.0(238.3*V)\r\n"
    "1-0:52.7.0(237.1*V)\r\n"
    "1-0:72.7.0(237.7*V)\r\n"
    "1-0:31.7.0(000*A)\r\n"
    "1-0:51.7.0(003*A)\r\n"
    "1-0:71.7.0(003*A)\r\n"
    "1-0:21.7.0(00.054*kW)\r\n"
    "1-0:41.7.0(00.000*kW)\r\n"
    "1-0:61.7.0(00.631*kW)\r\n"
    "1-0:22.7.0(00.000*kW)\r\n"
    "1-0:42.7.0(00.842*kW)\r\n"
    "1-0:62.7.0(00.000*kW)\r\n"
    "!46B4\r\n"
    "\r\n"
)
"""Iskra AM550 (DSMR 5.0) with two entries in the power failure log."""

TRUNCATED_THEN_COMPLETE = (
    "\r\n"
    "/ISK5\\2M550T-1012\r\n"
    "\r\n"
    "1-3:0.2.8(50)\r\n"
    "0-0:1.0.0(220528150240S)\r\n"
    "0-0:96.1.1(4530303434303037313331363530363138)\r\n"
    "1-0:1.8.1(016366.258*kWh)\r\n"
    "1-0:1.8.2(013315.593*kWh)\r\n"
    "1-0:2.8.1(002434.782*kWh)\r\n"
    "1-0:2.8.2(006153.962*kWh)\r\n"
    "0-0:96.14.0(0001)\r\n"
    "1-0:1.7.0(00.000*kW)\r\n"
    "1-0:2.7.0(02.875*kW)\r\n"
    "0-0:96.7.21(00005)\r\n"
    "0-0:96.7.9(00004)\r\n"
    "1-0:99.97.0(2)(0-0:96.7.19)(180417201458S)(0000000236*s)(220525094346S)(0000002936*s)\r\n"
    "1-0:32.32.0(0\r\n"
    "/ISK5\\2M550T-1012\r\n"
    "\r\n"
    "1-3:0.2.8(50)\r\n"
    "0-0:1.0.0(220528150245S)\r\n"
    "0-0:96.1.1(4530303434303037313331363530363138)\r\n"
    "1-0:1.8.1(016366.258*kWh)\r\n"
    "1-0:1.8.2(013315.593*kWh)\r\n"
    "1-0:2.8.1(002434.785*kWh)\r\n"
    "1-0:2.8.2(006153.962*kWh)\r\n"
    "0-0:96.14.0(0001)\r\n"
    "1-0:1.7.0(00.000*kW)\r\n"
    "1-0:2.7.0(02.857*kW)\r\n"
    "0-0:96.7.21(00005)\r\n"
    "0-0:96.7.9(00004)\r\n"
    "1-0:99.97.0(2)(0-0:96.7.19)(180417201458S)(0000000236*s)(220525094346S)(0000002936*s)\r\n"
    "1-0:32.32.0(00004)\r\n"
    "1-0:52.32.0(00003)\r\n"
    "1-0:72.32.0(00003)\r\n"
    "1-0:32.36.0(00001)\r\n"
    "1-0:52.36.0(00001)\r\n"
    "1-0:72.36.0(00001)\r\n"
    "0-0:96.13.0()\r\n"
    "1-0:32.7.0(239.5*V)\r\n"
    "1-0:52.7.0(239.2*V)\r\n"
    "1-0:72.7.0(238.7*V)\r\n"
    "1-0:31.7.0(000*A)\r\n"
    "1-0:51.7.0(014*A)\r\n"
    "1-0:71.7.0(003*A)\r\n"
    "1-0:21.7.0(00.052*kW)\r\n"
    "1-0:41.7.0(00.000*kW)\r\n"
    "1-0:61.7.0(00.666*kW)\r\n"
    "1-0:22.7.0(00.000*kW)\r\n"
    "1-0:42.7.0(03.572*kW)\r\n"
    "1-0:62.7.0(00.000*kW)\r\n"
    "!34B6\r\n"
    "\r\n"
)
"""A telegram cut off mid-line, directly followed by a complete one."""

DSMR22_HOURLY_GAS = (
    "/ISk5\\2MT382-1003\r\n"
    "\r\n"
    "0-0:96.1.1(5A424556303035313036383434393132)\r\n"
    "1-0:1.8.1(16719.940*kWh)\r\n"
    "1-0:1.8.2(19403.220*kWh)\r\n"
    "1-0:2.8.1(00859.681*kWh)\r\n"
    "1-0:2.8.2(01817.057*kWh)\r\n"
    "0-0:96.14.0(0002)\r\n"
    "1-0:1.7.0(0000.89*kW)\r\n"
    "1-0:2.7.0(0000.00*kW)\r\n"
    "0-0:17.0.0(0999.00*kW)\r\n"
    "0-0:96.3.10(1)\r\n"
    "0-0:96.13.1()\r\n"
    "0-0:96.13.0()\r\n"
    "0-2:24.1.0(3)\r\n"
    "0-2:96.1.0(3238303131303038333036343239303133)\r\n"
    "0-2:24.3.0(211122210000)(00)(60)(1)(0-2:24.2.1)(m3)\r\n"
    "(13368.864)\r\n"
    "0-2:24.4.0(1)\r\n"
    "!\r\n"
)
"""Iskra MT382 (DSMR 2.2): no checksum, gas reading on a continuation line."""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_reader_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove all reader env vars and isolate from .env files before each test.

    This runs automatically for every test in the suite.
    Individual tests or fixtures then set only the vars they need.
    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_READER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required and optional environment variables for ReaderSettings.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "P1_DEVICE": "/dev/ttyUSB1",
        "P1_BAUDRATE": "9600",
        "P1_READ_TIMEOUT_S": "0.5",
        "END_OF_RECORD_REGEX": r"\r\n!\r\n",
        "MAX_RECORD_SIZE": "4096",
        "HISTORY_SIZE": "10",
        "KEEP_INVALID": "true",
        "HEALTH_PATH": "/tmp/test-health.json",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables (no optional ones).

    Optional variables should fall back to their defaults.
    """
    env = {"P1_DEVICE": "/dev/ttyUSB0"}
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def dsmr50_example() -> str:
    return DSMR50_EXAMPLE


@pytest.fixture()
def dsmr42_with_gas() -> str:
    return DSMR42_WITH_GAS


@pytest.fixture()
def dsmr42_gas_without_unit() -> str:
    return DSMR42_GAS_WITHOUT_UNIT


@pytest.fixture()
def kaifa_gas_in_slot_2() -> str:
    return KAIFA_GAS_IN_SLOT_2


@pytest.fixture()
def dsmr50_power_failures() -> str:
    return DSMR50_POWER_FAILURES


@pytest.fixture()
def truncated_then_complete() -> str:
    return TRUNCATED_THEN_COMPLETE


@pytest.fixture()
def dsmr22_hourly_gas() -> str:
    return DSMR22_HOURLY_GAS
