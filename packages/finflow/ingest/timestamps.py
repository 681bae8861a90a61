"""Timestamp normalization shared by the backup adapters."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def epoch_ms_to_iso(raw: str | int | None, *, fallback: str) -> str:
    """Convert epoch milliseconds to ISO-8601 (UTC); ``fallback`` when unusable."""

    if raw is None:
        return fallback
    try:
        ms = int(str(raw).strip())
        return datetime.fromtimestamp(ms / 1000, tz=UTC).isoformat()
    except (ValueError, OverflowError, OSError):
        return fallback


def normalize_timestamp(raw: str | None, *, fallback: str) -> str:
    """Accept ISO strings as-is and epoch-millisecond digit strings; else ``fallback``."""

    if raw is None or not raw.strip():
        return fallback
    s = raw.strip()
    if s.isdigit():
        return epoch_ms_to_iso(s, fallback=fallback)
    return s


__all__ = ["now_iso", "epoch_ms_to_iso", "normalize_timestamp"]
