# activation/status.py
import re
from datetime import datetime, timezone
from typing import Optional

from activation.models import DeviceRecord

ACTIVE = "active"
INACTIVE = "inactive"
NOT_FOUND = "not_found"

_FRACTION = re.compile(r"(\d\d:\d\d:\d\d)[.,](\d+)")
_COMPACT_OFFSET = re.compile(r"(\d\d:\d\d(?::\d\d(?:\.\d+)?)?)([+-]\d\d)(\d\d)$")


def normalize_code(raw) -> str:
    if raw is None:
        return ""
    return str(raw).strip().upper()


def _canonical_iso(value: str) -> str:
    # fromisoformat before 3.11 only takes "+HH:MM" offsets and 3 or 6 digit fractions
    v = value.strip()
    if v[-1:] in ("Z", "z"):
        v = v[:-1] + "+00:00"
    v = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", v, count=1)
    v = _COMPACT_OFFSET.sub(r"\1\2:\3", v)
    return v


def parse_expiry(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 expiry. Returns None for empty or unparseable values.

    Naive timestamps and bare dates are taken as UTC.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(_canonical_iso(value))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def evaluate_status(record: Optional[DeviceRecord], now: Optional[datetime] = None) -> str:
    if record is None:
        return NOT_FOUND
    if record.status != ACTIVE:
        return INACTIVE
    expires = parse_expiry(record.expiry)
    if expires is None:
        # missing or malformed expiry never blocks activation
        return ACTIVE
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return ACTIVE if expires > now else INACTIVE
