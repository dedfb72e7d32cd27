"""Timestamp utilities."""

import re
import time
from datetime import datetime

_FRACTION = re.compile(r"\.(\d+)")


def get_timestamp() -> str:
    """Get current timestamp in seconds as sent in CB-ACCESS-TIMESTAMP."""
    return f"{time.time():.3f}"


def parse_time(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the API.

    The API sends a trailing 'Z' and between one and six fractional digits,
    neither of which older fromisoformat implementations accept.
    """
    if value is None or isinstance(value, datetime):
        return value
    text = value.replace("Z", "+00:00")
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return datetime.fromisoformat(text)


def to_iso(value: str | datetime | None) -> str | None:
    """Format a datetime for query parameters."""
    if isinstance(value, datetime):
        return value.isoformat()
    return value
