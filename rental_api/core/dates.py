from datetime import datetime, timezone
from typing import List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime to aware UTC.
    Naive values (e.g. read back from SQLite) are treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def range_clauses(column, start: Optional[datetime], end: Optional[datetime]) -> List:
    """Inclusive [start, end] filter clauses for a timestamp column; either bound may be open."""
    clauses = []
    if start is not None:
        clauses.append(column >= to_utc(start))
    if end is not None:
        clauses.append(column <= to_utc(end))
    return clauses


def month_start(dt: datetime) -> datetime:
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def next_month(dt: datetime) -> datetime:
    """First instant of the month after dt's month."""
    start = month_start(dt)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def previous_month(dt: datetime) -> datetime:
    """First instant of the month before dt's month."""
    start = month_start(dt)
    if start.month == 1:
        return start.replace(year=start.year - 1, month=12)
    return start.replace(month=start.month - 1)
