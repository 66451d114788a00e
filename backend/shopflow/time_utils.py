# Overview: UTC clock and ISO-8601 helpers for sale timestamps and ledger windows.

"""
All timestamps are stored as naive datetimes that mean UTC. Incoming strings
are converted on the way in and rendered with a trailing Z on the way out,
so receipts and ledger filters agree regardless of the caller's offset.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Read an ISO-8601 string as a naive UTC datetime.

    Blank input gives None. Offset-free input is taken as UTC already;
    "Z" and "+HH:MM" suffixes are shifted to UTC. Raises ValueError for
    anything else.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def ledger_window(
    since: Optional[str], until: Optional[str]
) -> tuple[Optional[datetime], Optional[datetime]]:
    """
    Parse a [since, until) filter pair. Either end may be open.

    Raises ValueError when a bound is malformed or the window is empty.
    """
    start = parse_iso_datetime(since)
    end = parse_iso_datetime(until)
    if start is not None and end is not None and start >= end:
        raise ValueError("since must be earlier than until")
    return start, end


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Whole-second ISO-8601 with a Z suffix; naive input counts as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"
