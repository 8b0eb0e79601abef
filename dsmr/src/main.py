"""
P1 reader daemon: serial port -> framer -> decoder -> in-memory history.

Runs one read loop. The blocking framer read happens in a worker thread
(``asyncio.to_thread``); every complete record is decoded into a Telegram,
logged, kept in the in-memory history and counted in the health file.
A decode problem never stops the loop: invalid telegrams are logged at
WARNING and counted. A framing error (no end-of-record within the max
record size) is fatal for the stream and stops the loop.

Graceful shutdown on SIGTERM/SIGINT sets a shared asyncio.Event which closes
the byte source; the in-flight read then returns and the loop exits.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-015)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from dsmr.src.decoder import decode
from dsmr.src.framer import FramingError, RecordFramer
from dsmr.src.health import HealthWriter
from dsmr.src.history import TelegramHistory

if TYPE_CHECKING:
    from dsmr.src.models import Telegram

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging() -> None:
    """Configure structured JSON logging for the reader daemon.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    The level starts at INFO; async_main applies LOG_LEVEL once the settings
    have loaded.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.INFO)


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: object) -> None:
    """Log a config summary at startup.

    Args:
        settings: A ReaderSettings instance (or any object with the same attrs).
    """
    logger.info(
        "P1 reader starting with config: "
        "p1_device=%s, p1_baudrate=%s, p1_read_timeout_s=%s, "
        "max_record_size=%s, history_size=%s, keep_invalid=%s, "
        "health_path=%s, log_level=%s",
        settings.p1_device,  # type: ignore[attr-defined]
        settings.p1_baudrate,  # type: ignore[attr-defined]
        settings.p1_read_timeout_s,  # type: ignore[attr-defined]
        settings.max_record_size,  # type: ignore[attr-defined]
        settings.history_size,  # type: ignore[attr-defined]
        settings.keep_invalid,  # type: ignore[attr-defined]
        settings.health_path,  # type: ignore[attr-defined]
        settings.log_level,  # type: ignore[attr-defined]
    )


def _log_telegram(telegram: Telegram) -> None:
    """Log the headline values of a decoded telegram."""
    if telegram.is_valid:
        logger.info(
            "Telegram from %s at %s: received=%s kW, returned=%s kW, gas=%s m3",
            telegram.equipment_id or telegram.ident,
            telegram.timestamp.isoformat() if telegram.timestamp else None,
            telegram.electricity_power_received,
            telegram.electricity_power_returned,
            telegram.gas_m3,
        )
    else:
        logger.warning(
            "Invalid telegram from %s: crc=%s, crc_valid=%s, syntax_errors=%s",
            telegram.raw_ident,
            telegram.crc,
            telegram.is_valid_crc,
            list(telegram.syntax_errors),
        )


# ---------------------------------------------------------------------------
# Single-iteration function (easily testable)
# ---------------------------------------------------------------------------


def _handle_record(
    record: str,
    *,
    history: TelegramHistory,
    health: HealthWriter | None,
    keep_invalid: bool = False,
) -> Telegram | None:
    """Decode one framed record and store the result.

    Blank records (the empty remainder at end of stream) are skipped.

    Args:
        record: Framed telegram text.
        history: In-memory telegram window.
        health: HealthWriter instance, or None to skip health writes.
        keep_invalid: Keep invalid telegrams in the history as well.

    Returns:
        The decoded telegram, or None for a blank record.
    """
    if not record.strip():
        return None

    telegram = decode(record)
    assert telegram is not None
    _log_telegram(telegram)

    if telegram.is_valid or keep_invalid:
        history.append(telegram)

    if health is not None:
        try:
            health.set_history_count(history.count())
            health.record_telegram(valid=telegram.is_valid)
        except OSError:
            logger.warning("Failed to write health file", exc_info=True)
    return telegram


# ---------------------------------------------------------------------------
# Loop runners
# ---------------------------------------------------------------------------


async def _read_loop(
    *,
    framer: RecordFramer,
    history: TelegramHistory,
    health: HealthWriter | None,
    shutdown_event: asyncio.Event,
    keep_invalid: bool = False,
) -> None:
    """Read and decode records until end of stream, shutdown or a framing error.

    Args:
        framer: Record framer over the P1 byte source.
        history: In-memory telegram window.
        health: HealthWriter instance, or None to skip health writes.
        shutdown_event: Event to signal graceful shutdown.
        keep_invalid: Keep invalid telegrams in the history as well.
    """
    logger.info("Read loop started")
    while not shutdown_event.is_set():
        try:
            record = await asyncio.to_thread(framer.read)
        except FramingError:
            logger.error("Framing error, stopping read loop", exc_info=True)
            break
        except ValueError:
            # A file source closed under an in-flight read.
            if not shutdown_event.is_set():
                raise
            break

        if record is None:
            logger.info("End of P1 stream")
            break
        if shutdown_event.is_set():
            # Partial record cut off by closing the source.
            break
        _handle_record(record, history=history, health=health, keep_invalid=keep_invalid)
    logger.info("Read loop stopped")


async def run_reader(
    *,
    framer: RecordFramer,
    source: object,
    history: TelegramHistory,
    health: HealthWriter | None,
    shutdown_event: asyncio.Event,
    keep_invalid: bool = False,
) -> None:
    """Run the read loop and close *source* when shutdown is requested.

    Closing the source is what unblocks a read waiting in the worker
    thread, so it happens as soon as the shutdown event is set.

    Args:
        framer: Record framer over *source*.
        source: The byte source; must have a ``close()`` method.
        history: In-memory telegram window.
        health: HealthWriter instance, or None to skip health writes.
        shutdown_event: Event to signal graceful shutdown.
        keep_invalid: Keep invalid telegrams in the history as well.
    """

    async def _close_on_shutdown() -> None:
        await shutdown_event.wait()
        source.close()  # type: ignore[attr-defined]

    closer = asyncio.create_task(_close_on_shutdown())
    try:
        await _read_loop(
            framer=framer,
            history=history,
            health=health,
            shutdown_event=shutdown_event,
            keep_invalid=keep_invalid,
        )
    finally:
        shutdown_event.set()
        await closer
    kept = history.snapshot()
    latest = history.latest()
    logger.info(
        "Shutdown complete (%d telegrams in history, %d valid, latest from %s)",
        len(kept),
        sum(telegram.is_valid for telegram in kept),
        latest.timestamp.isoformat() if latest is not None and latest.timestamp else None,
    )


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> None:
    """Async entrypoint: load config, build components, run the reader.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.
    """
    configure_logging()

    from dsmr.src.config import ReaderSettings
    from dsmr.src.source import open_source

    settings = ReaderSettings()
    logging.getLogger().setLevel(settings.log_level)
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    source = open_source(
        settings.p1_device,
        baudrate=settings.p1_baudrate,
        timeout_s=settings.p1_read_timeout_s,
    )
    framer = RecordFramer(
        source,
        end_of_record_regex=settings.end_of_record_regex,
        max_record_size=settings.max_record_size,
    )

    await run_reader(
        framer=framer,
        source=source,
        history=TelegramHistory(settings.history_size),
        health=HealthWriter(settings.health_path),
        shutdown_event=shutdown_event,
        keep_invalid=settings.keep_invalid,
    )


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the P1 reader daemon."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
