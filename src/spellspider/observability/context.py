"""Context propagation for scan correlation across async boundaries."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4


# Context for scan propagation; empty outside of a scan
scan_context: ContextVar[dict | None] = ContextVar("scan_context", default=None)


def generate_scan_id() -> str:
    """Generate a 12-char hex scan ID."""
    return uuid4().hex[:12]


def get_scan_context() -> dict:
    """Get current scan context (empty dict when no scan is active)."""
    return dict(scan_context.get() or {})


def set_scan_context(scan_id: str, **extra: object) -> None:
    """Set scan context for current async context."""
    scan_context.set({"scan_id": scan_id, **extra})


@contextmanager
def bind_scan_context(scan_id: str | None = None, **extra: object) -> Iterator[str]:
    """Bind a scan context for the duration of a block and restore the previous one."""
    resolved = scan_id or generate_scan_id()
    token = scan_context.set({"scan_id": resolved, **extra})
    try:
        yield resolved
    finally:
        scan_context.reset(token)
