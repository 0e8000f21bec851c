"""Request parameter parsing utilities.

Query parameters arrive as raw strings and are converted here, after the
authorization gate and before a controller runs. Every parser raises
`ValueError` with a message naming the offending parameter; the HTTP
layer turns that into a 400.
"""

from datetime import datetime
from typing import Optional

_TRUE = {'true', 'on', 'yes', '1'}
_FALSE = {'false', 'off', 'no', '0'}


def require_text(name: str, raw: Optional[str]) -> str:
    """Return `raw` unchanged, rejecting only a missing value; `""` is kept."""
    if raw is None:
        raise ValueError(f"parameter '{name}' is required")
    return raw


def parse_bool(name: str, raw: Optional[str]) -> bool:
    """Parse a boolean flag such as `solved=true` or `inactive=0`."""
    value = require_text(name, raw).strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"parameter '{name}' must be a boolean, got {raw!r}")


def to_local_datetime(value: datetime) -> datetime:
    """Drop any UTC offset and sub-second part, keeping the wall-clock time."""
    return value.replace(tzinfo=None, microsecond=0)


def parse_local_datetime(name: str, raw: Optional[str]) -> datetime:
    """Parse an ISO-8601 date-time like `2022-04-20T17:35` or `2022-04-20T17:35:00`.

    A trailing offset (`Z`, `+02:00`) is accepted and dropped.
    """
    value = require_text(name, raw).strip()
    if 'T' not in value:
        raise ValueError(f"parameter '{name}' must be an ISO-8601 date-time, got {raw!r}")
    if value.endswith(('Z', 'z')):
        value = value[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValueError(f"parameter '{name}' must be an ISO-8601 date-time, got {raw!r}") from None
    return to_local_datetime(parsed)
