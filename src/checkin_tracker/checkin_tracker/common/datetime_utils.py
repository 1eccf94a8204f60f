from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

END_OF_DAY = time(23, 59, 59, 999000)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def parse_instant(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp into an aware UTC datetime.

    Accepts datetimes (naive values are taken as UTC, which is how the
    MySQL connector returns DATETIME columns) and ISO-8601 strings including a
    trailing ``Z``. Returns None for anything unparseable.
    """

    if value is None:
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_date_str(instant: datetime) -> str:
    """Calendar date (YYYY-MM-DD) of an instant, in UTC."""
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%d")


def start_of_day_utc(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day_utc(day: date) -> datetime:
    """Last millisecond of ``day`` in UTC; makes an end-date bound inclusive."""
    return datetime.combine(day, END_OF_DAY, tzinfo=timezone.utc)


def cutoff_instant(day: date) -> datetime:
    """``day`` 23:59:59Z, the bulk-delete cutoff."""
    return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)


def format_instant(instant: Optional[datetime], raw: str = "") -> str:
    if instant is None:
        return raw
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


HALF_HOUR = timedelta(minutes=30)
ONE_HOUR = timedelta(hours=1)
