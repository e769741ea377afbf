"""Provide utility helpers for timestamps."""

from __future__ import annotations

import threading
from datetime import date, datetime, timedelta, timezone
from typing import Optional


def _format_iso(dt: datetime) -> str:
    """Render *dt* as a UTC instant with millisecond precision and a ``Z`` suffix."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def _now_iso() -> str:
    return _format_iso(datetime.now(timezone.utc))


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        if not isinstance(value, str):
            value = str(value)
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        dt = datetime.fromisoformat(value)
        # If a naive timestamp slips in, assume UTC to avoid crashes.
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError:
        return None


def _is_iso_date(value: str) -> bool:
    """Return True if *value* is an ISO calendar date (``YYYY-MM-DD``)."""
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return True


class MonotonicClock:
    """Issue ISO timestamps that never repeat or go backwards.

    Two mutations inside the same millisecond (or a wall clock that steps
    back) would otherwise produce equal ``updatedAt`` values.
    """

    def __init__(self) -> None:
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def observe(self, value: Optional[str]) -> None:
        """Make sure future timestamps are later than *value*."""
        dt = _parse_iso(value)
        if dt is None:
            return
        with self._lock:
            if self._last is None or dt > self._last:
                self._last = dt

    def now_iso(self) -> str:
        with self._lock:
            now = datetime.now(timezone.utc)
            now = now.replace(microsecond=now.microsecond // 1000 * 1000)
            if self._last is not None and now <= self._last:
                now = self._last + timedelta(milliseconds=1)
            self._last = now
            return _format_iso(now)
