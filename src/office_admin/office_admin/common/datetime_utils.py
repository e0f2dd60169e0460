from __future__ import annotations

from datetime import date, datetime, time, timedelta

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(str(value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def parse_iso_datetime(value: str) -> datetime:
    """Parse 'YYYY-MM-DD HH:MM[:SS]' or 'YYYY-MM-DDTHH:MM[:SS]' into a naive datetime."""
    v = str(value or "").strip()
    if v.endswith(("Z", "z")):
        v = v[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(v)
    except ValueError:
        raise ValidationError(f"Invalid timestamp {value!r}, expected YYYY-MM-DD HH:MM")
    # Stored as DATETIME (no zone): offsets are converted to local time first.
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.replace(microsecond=0)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [00:00 of day, 00:00 of next day)."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now().replace(microsecond=0)
