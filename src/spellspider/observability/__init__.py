"""Observability module: structured logging and scan context propagation."""

from spellspider.observability.context import (
    bind_scan_context,
    generate_scan_id,
    get_scan_context,
    scan_context,
    set_scan_context,
)
from spellspider.observability.logging import JsonFormatter, ScanContextFilter, configure_logging


__all__ = [
    "JsonFormatter",
    "ScanContextFilter",
    "bind_scan_context",
    "configure_logging",
    "generate_scan_id",
    "get_scan_context",
    "scan_context",
    "set_scan_context",
]
