from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 local timestamp (``2026-02-01T08:30`` or with seconds)."""
    return datetime.fromisoformat(value.strip())


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


def minutes_of_day(value: datetime) -> int:
    return value.hour * 60 + value.minute


def elapsed_minutes(start: datetime, end: datetime) -> Decimal:
    """Exact elapsed minutes between two timestamps (may be fractional)."""
    return Decimal(str((end - start).total_seconds())) / Decimal(60)


def whole_minutes(delta: timedelta) -> int:
    """Round a duration to whole minutes, halves rounding up."""
    minutes = Decimal(str(delta.total_seconds())) / Decimal(60)
    return int(minutes.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> timedelta:
    latest_start = max(start_a, start_b)
    earliest_end = min(end_a, end_b)
    if earliest_end <= latest_start:
        return timedelta(0)
    return earliest_end - latest_start
