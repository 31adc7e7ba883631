"""RFC3339 helpers shared by verification and payload decoding."""

from __future__ import annotations

import re
from datetime import datetime, timezone

_RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 timestamp into an aware datetime.

    Fractions longer than microseconds (senders often emit nanoseconds) are
    truncated. Raises ValueError for anything that is not a full date-time
    with an explicit offset; date-only strings and naive times are rejected.
    """
    match = _RFC3339_RE.match(value.strip())
    if not match:
        raise ValueError(f"not an RFC3339 timestamp: {value!r}")
    date_part, time_part, fraction, offset = match.groups()
    if offset in ("Z", "z"):
        offset = "+00:00"
    fraction = f".{fraction[:6].ljust(6, '0')}" if fraction else ""
    return datetime.fromisoformat(f"{date_part}T{time_part}{fraction}{offset}")


def format_rfc3339(moment: datetime) -> str:
    """Format an aware datetime as RFC3339 UTC with second precision."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
