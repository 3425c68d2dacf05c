"""
Structured JSON logging configuration for SeriesKeeper.

All log records are emitted as single-line JSON objects to the configured
log file, with warnings and above mirrored to stderr.

Usage::

    from serieskeeper.utils.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("tool call complete", extra={"tool": "get_character_knowledge_state", "character_id": 7})

For request handlers that need series-scoped context on every message::

    from serieskeeper.utils.logging_config import get_logger, SeriesAdapter

    raw = get_logger("serieskeeper.routes")
    logger = SeriesAdapter(raw, series_id=3)
    logger.info("knowledge state set", extra={"chapter_id": 9, "knowledge_item": "the vault code"})
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping

from serieskeeper.config import get_settings


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

class JSONFormatter(logging.Formatter):
    """Emits each record as a single-line JSON object."""

    EXTRA_KEYS = ("series_id", "character_id", "chapter_id", "knowledge_item",
                  "knowledge_state", "tool", "event_type", "duration_ms", "metadata")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self.EXTRA_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


# ---------------------------------------------------------------------------
# SeriesAdapter: attaches series_id to every log call
# ---------------------------------------------------------------------------

class SeriesAdapter(logging.LoggerAdapter):
    """Logger adapter that injects ``series_id`` into every record."""

    def __init__(self, logger: logging.Logger, series_id: Any):
        super().__init__(logger, {"series_id": series_id})

    def process(
        self,
        msg: str,
        kwargs: MutableMapping[str, Any],
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = kwargs.setdefault("extra", {})
        extra.update(self.extra)
        return msg, kwargs


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_CONFIGURED = False


def setup_logging(log_file: str | None = None, level: int | str | None = None) -> None:
    """Configure the root ``serieskeeper`` logger with JSON handlers.

    Safe to call multiple times; only the first call has effect.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return
    _CONFIGURED = True

    settings = get_settings()
    root = logging.getLogger("serieskeeper")
    root.setLevel(level or settings.log_level)
    root.propagate = False

    formatter = JSONFormatter()

    fh = logging.FileHandler(log_file or settings.log_file, encoding="utf-8")
    fh.setFormatter(formatter)
    root.addHandler(fh)

    # Stderr handler for docker / systemd journal visibility
    sh = logging.StreamHandler(sys.stderr)
    sh.setFormatter(formatter)
    sh.setLevel(logging.WARNING)
    root.addHandler(sh)


def get_logger(name: str = "serieskeeper") -> logging.Logger:
    """Return a child logger under the ``serieskeeper`` namespace.

    Automatically calls :func:`setup_logging` on first use.
    """
    setup_logging()
    if name.startswith("serieskeeper"):
        return logging.getLogger(name)
    return logging.getLogger(f"serieskeeper.{name}")
