# taskboard – UTC/date helpers
from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Optional, Union

DateLike = Union[date, datetime, str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date(value: DateLike) -> date:
    """Coerce a calendar date from a date, datetime or ISO-8601 string."""
    if isinstance(value, datetime):
        return as_utc(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        if len(s) == 10:
            return date.fromisoformat(s)
        return as_utc(datetime.fromisoformat(s.replace("Z", "+00:00"))).date()
    raise TypeError(f"not a date: {value!r}")


def parse_timestamp(value: DateLike) -> datetime:
    """Coerce an aware UTC datetime; a bare date means midnight UTC."""
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        s = value.strip()
        if len(s) == 10:
            return parse_timestamp(date.fromisoformat(s))
        return as_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))
    raise TypeError(f"not a timestamp: {value!r}")


def to_iso(value: Optional[Union[date, datetime]]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    return value.isoformat()
