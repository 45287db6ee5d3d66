from __future__ import annotations

from datetime import datetime, timezone


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_start(moment: datetime, months_back: int = 0) -> datetime:
    month_index = moment.year * 12 + (moment.month - 1) - months_back
    year, month = divmod(month_index, 12)
    return datetime(year, month + 1, 1, tzinfo=timezone.utc)


def quarter_start(moment: datetime) -> datetime:
    return datetime(moment.year, ((moment.month - 1) // 3) * 3 + 1, 1, tzinfo=timezone.utc)
