"""
Record framer that cuts a continuous P1 byte stream into telegrams.

A meter emits telegrams back-to-back over the serial line without any
out-of-band delimiter. The framer buffers the decoded text and returns
everything up to and including the first end-of-record match; whatever
follows stays buffered for the next call.

Arbitrary chunking of the input yields the same sequence of records: bytes
are decoded with an incremental UTF-8 decoder so a multi-byte character
split across two reads is reassembled before matching.

At end of stream the remaining buffer is returned once (possibly empty) and
every later call returns None.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import codecs
import logging
import re
from collections.abc import Iterator
from typing import Protocol

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------

DEFAULT_END_OF_RECORD_REGEX = r"\r\n![0-9A-Fa-f]{4}\r\n"
"""Checksum line terminating a DSMR 4/5 telegram."""

MIN_MAX_RECORD_SIZE = 1024
MAX_MAX_RECORD_SIZE = 1024 * 1024
DEFAULT_MAX_RECORD_SIZE = 10240
"""Characters buffered before giving up on finding an end-of-record."""

READ_CHUNK_SIZE = 1024


class ByteSource(Protocol):
    """Anything with a blocking ``read(size)`` returning ``b""`` at end of stream."""

    def read(self, size: int, /) -> bytes: ...


class FramingError(OSError):
    """Raised when the buffer outgrows the max record size without a match."""


def validate_max_record_size(value: int) -> int:
    """Check a max record size against the framer bounds.

    Raises:
        ValueError: If *value* is outside
            ``[MIN_MAX_RECORD_SIZE, MAX_MAX_RECORD_SIZE]``.
    """
    if value < MIN_MAX_RECORD_SIZE or value > MAX_MAX_RECORD_SIZE:
        raise ValueError(
            f"max record size must be between {MIN_MAX_RECORD_SIZE} "
            f"and {MAX_MAX_RECORD_SIZE} (got {value})"
        )
    return value


def compile_end_of_record(pattern: str) -> re.Pattern[str]:
    """Compile an end-of-record pattern, rejecting capture groups.

    Raises:
        ValueError: If the pattern does not compile or contains groups.
    """
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"invalid end-of-record pattern: {exc}") from exc
    if compiled.groups:
        raise ValueError("end-of-record pattern must not contain capturing groups")
    return compiled


class RecordFramer:
    """Splits a byte stream into records ending with an end-of-record match.

    One framer serves exactly one stream; it is not safe to share between
    threads.

    Args:
        source: Blocking byte source (serial port, file, socket wrapper).
        end_of_record_regex: Pattern matching the end of a record.
        max_record_size: Characters to buffer before raising FramingError.
        chunk_size: Bytes requested from *source* per read.
    """

    def __init__(
        self,
        source: ByteSource,
        end_of_record_regex: str = DEFAULT_END_OF_RECORD_REGEX,
        max_record_size: int = DEFAULT_MAX_RECORD_SIZE,
        chunk_size: int = READ_CHUNK_SIZE,
    ) -> None:
        self._source = source
        self._pattern = compile_end_of_record(end_of_record_regex)
        self._max_record_size = validate_max_record_size(max_record_size)
        self._chunk_size = chunk_size
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        # None once the final remainder has been handed out.
        self._buffer: str | None = ""

    @property
    def max_record_size(self) -> int:
        return self._max_record_size

    def read(self) -> str | None:
        """Return the next record, the trailing remainder, or None.

        Returns:
            The text through the end of the next end-of-record match. At end
            of stream the unterminated remainder is returned once, then None.

        Raises:
            FramingError: If more than ``max_record_size`` characters are
                buffered without an end-of-record match.
        """
        if self._buffer is None:
            return None

        record = self._take_record()
        while record is None:
            chunk = self._source.read(self._chunk_size)
            if not chunk:
                remainder = self._buffer + self._decoder.decode(b"", final=True)
                self._buffer = None
                logger.debug("End of stream, returning %d trailing characters", len(remainder))
                return remainder

            self._buffer += self._decoder.decode(chunk)
            record = self._take_record()
            if record is None and len(self._buffer) > self._max_record_size:
                raise FramingError(
                    f"After {len(self._buffer)} characters the end-of-record "
                    "pattern has not been found yet."
                )
        return record

    def __iter__(self) -> Iterator[str]:
        while (record := self.read()) is not None:
            yield record

    def _take_record(self) -> str | None:
        """Cut the first complete record off the buffer, if there is one."""
        assert self._buffer is not None
        match = self._pattern.search(self._buffer)
        if match is None:
            return None
        record = self._buffer[: match.end()]
        self._buffer = self._buffer[match.end() :]
        return record
