from __future__ import annotations

import re
from datetime import datetime
from typing import Optional


# Existing containers carry 1 to 7 fractional digits (trailing zeros dropped);
# fromisoformat before 3.11 only takes 3 or 6.
_FRACTION_RE = re.compile(r"\.(\d+)")


def now() -> datetime:
    """Local wall-clock time, naive, as stored in every container."""
    return datetime.now()


def _to_microseconds(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp from a container.

    - None / "" -> None
    - trailing "Z" and offsets are accepted and converted to naive local time
    - fractional seconds of any length are padded or truncated to microseconds
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    s = _FRACTION_RE.sub(_to_microseconds, s, count=1)

    parsed = datetime.fromisoformat(s)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()


def in_month(dt: Optional[datetime], reference: datetime) -> bool:
    """True when dt falls in the same calendar month and year as reference."""
    if dt is None:
        return False
    return dt.year == reference.year and dt.month == reference.month
