"""Log output for scans: one JSON object per line, stamped with the active scan."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
import logging
from pathlib import Path
import sys
from typing import Any, TextIO

import orjson

from spellspider.observability.context import get_scan_context


_RESERVED_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
    "scan_id",
    "scan_label",
}

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s]%(scan_label)s %(message)s"

# Chatty third-party loggers held at WARNING
QUIET_LOGGERS = ("httpx", "httpcore", "google", "urllib3")


class ScanContextFilter(logging.Filter):
    """Copy the active scan id onto each record so any formatter can use it."""

    def filter(self, record: logging.LogRecord) -> bool:
        scan_id = get_scan_context().get("scan_id")
        record.scan_id = scan_id
        record.scan_label = f" scan={scan_id}" if scan_id else ""
        return True


class JsonFormatter(logging.Formatter):
    """Render records as compact JSON for log shippers.

    Scan context keys sit at the top level next to the message. Extra
    attributes passed through ``extra=`` are included after redaction.
    """

    SENSITIVE_KEYS = frozenset({"api_key", "gemini_api_key", "authorization", "password", "secret", "token"})
    MAX_MESSAGE_CHARS = 2000
    MAX_EXTRA_CHARS = 500

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self._clip(record.getMessage(), self.MAX_MESSAGE_CHARS),
        }
        if "." in record.name:
            entry["component"] = record.name.rsplit(".", 1)[-1]

        entry.update(get_scan_context())

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in vars(record).items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            entry[key] = self._scrub(key, value)

        return orjson.dumps(entry, default=_to_jsonable).decode("utf-8")

    @staticmethod
    def _clip(text: str, limit: int) -> str:
        return text if len(text) <= limit else f"{text[:limit]}..."

    def _scrub(self, key: str, value: Any) -> Any:
        if key.lower() in self.SENSITIVE_KEYS:
            return "[REDACTED]"
        if isinstance(value, Mapping):
            return {str(k): self._scrub(str(k), v) for k, v in value.items()}
        if isinstance(value, str):
            return self._clip(value, self.MAX_EXTRA_CHARS)
        return value


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        try:
            return sorted(value)
        except TypeError:
            return list(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    return repr(value)


def _resolve_level(name: str, default: int = logging.INFO) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    *,
    logger_levels: dict[str, str] | None = None,
    stream: TextIO | None = None,
) -> None:
    """Replace the root handlers with a single scan-aware stream handler.

    Args:
        level: Root log level name, case-insensitive
        json_output: JSON lines when True, human-readable text otherwise
        logger_levels: Per-logger level overrides (logger name -> level name)
        stream: Destination stream, stdout when omitted
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(ScanContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for name, override in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(_resolve_level(override))
