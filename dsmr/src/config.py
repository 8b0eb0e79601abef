"""
P1 reader configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
no hardcoded device paths.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-011)

TODO:
- None
"""

from __future__ import annotations

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings

from dsmr.src.framer import (
    DEFAULT_END_OF_RECORD_REGEX,
    DEFAULT_MAX_RECORD_SIZE,
    compile_end_of_record,
    validate_max_record_size,
)

SUPPORTED_BAUDRATES = (9600, 115200)
"""9600 baud 7E1 for DSMR 2.2/3, 115200 baud 8N1 for DSMR 4/5."""


class ReaderSettings(BaseSettings):
    """P1 reader daemon configuration.

    All values are loaded from environment variables. Required variables
    must be set; optional variables have sensible defaults.

    Attributes:
        p1_device: Serial device (``/dev/ttyUSB0``) or a capture file to
            replay.
        p1_baudrate: Serial line speed; selects the matching frame format.
        p1_read_timeout_s: Serial read timeout; bounds how long shutdown
            waits for a blocked read.
        end_of_record_regex: Pattern that ends a telegram in the stream.
        max_record_size: Characters buffered before a framing error.
        history_size: Number of decoded telegrams kept in memory.
        keep_invalid: Whether invalid telegrams are kept in the history.
        health_path: JSON health file path.
        log_level: Root logger level name.
    """

    p1_device: str
    p1_baudrate: int = 115200
    p1_read_timeout_s: float = 1.0
    end_of_record_regex: str = DEFAULT_END_OF_RECORD_REGEX
    max_record_size: int = DEFAULT_MAX_RECORD_SIZE
    history_size: int = 100
    keep_invalid: bool = False
    health_path: str = "/data/health.json"
    log_level: str = "INFO"

    @field_validator("p1_baudrate")
    @classmethod
    def baudrate_must_be_supported(cls, v: int) -> int:
        """Validate the baud rate is one a P1 port actually uses."""
        if v not in SUPPORTED_BAUDRATES:
            raise ValueError(f"P1_BAUDRATE must be one of {SUPPORTED_BAUDRATES}")
        return v

    @field_validator("p1_read_timeout_s")
    @classmethod
    def read_timeout_must_be_positive(cls, v: float) -> float:
        """Validate the read timeout is positive."""
        if v <= 0:
            raise ValueError("P1_READ_TIMEOUT_S must be > 0")
        return v

    @field_validator("end_of_record_regex")
    @classmethod
    def end_of_record_regex_must_compile(cls, v: str) -> str:
        """Validate the pattern compiles and has no capturing groups."""
        compile_end_of_record(v)
        return v

    @field_validator("max_record_size")
    @classmethod
    def max_record_size_must_be_in_bounds(cls, v: int) -> int:
        """Validate the max record size is within the framer bounds."""
        return validate_max_record_size(v)

    @field_validator("history_size")
    @classmethod
    def history_size_must_be_valid(cls, v: int) -> int:
        """Validate history size is between 1 and 100000."""
        if v < 1 or v > 100_000:
            raise ValueError("HISTORY_SIZE must be >= 1 and <= 100000")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate and normalise the logging level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL must be a logging level name (got: '{v}')")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
