"""
Byte sources feeding the record framer.

A P1 port is read through pyserial. For replaying captured telegrams the
device setting may also point at a regular file, which is read in binary
mode and ends the stream at EOF.

The serial source never returns ``b""`` on a read timeout: an empty read is
how the framer recognises end of stream, so the source keeps waiting until
data arrives or it is closed.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-012)

TODO:
- None
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import BinaryIO

import serial

logger = logging.getLogger(__name__)

# DSMR 2.2/3 meters talk 9600 baud 7E1, DSMR 4/5 meters 115200 baud 8N1.
_FRAME_FORMATS: dict[int, tuple[int, str]] = {
    9600: (serial.SEVENBITS, serial.PARITY_EVEN),
    115200: (serial.EIGHTBITS, serial.PARITY_NONE),
}


class SerialSource:
    """Blocking reader on a P1 serial port.

    Args:
        device: Serial device path.
        baudrate: Line speed; selects the matching data bits and parity.
        timeout_s: Poll interval for checking whether the source was closed.
    """

    def __init__(self, device: str, baudrate: int = 115200, timeout_s: float = 1.0) -> None:
        bytesize, parity = _FRAME_FORMATS[baudrate]
        self._port = serial.Serial(
            device,
            baudrate,
            bytesize=bytesize,
            parity=parity,
            stopbits=serial.STOPBITS_ONE,
            timeout=timeout_s,
        )
        self._closed = False
        self._lock = threading.Lock()

    def read(self, size: int) -> bytes:
        """Return up to *size* bytes, waiting for at least one.

        Returns:
            The bytes available, or ``b""`` once the source is closed.
        """
        while not self._closed:
            with self._lock:
                if self._closed:
                    break
                data = self._port.read(min(size, max(1, self._port.in_waiting)))
            if data:
                return data
        return b""

    def close(self) -> None:
        """Stop reading and close the port once an in-flight read returns."""
        self._closed = True
        with self._lock:
            self._port.close()


def open_source(device: str, baudrate: int = 115200, timeout_s: float = 1.0) -> SerialSource | BinaryIO:
    """Open a serial port, or a capture file when *device* is a regular file."""
    if Path(device).is_file():
        logger.info("Replaying telegrams from file %s", device)
        return open(device, "rb")  # noqa: SIM115
    logger.info("Opening serial port %s at %d baud", device, baudrate)
    return SerialSource(device, baudrate, timeout_s)
