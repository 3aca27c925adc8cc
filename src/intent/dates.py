"""UTC calendar-day helpers.

"N days ago" means N calendar days before today's UTC date, not N * 24h of elapsed time. The cutoff
is computed here, in Python, and bound into SQL as a plain `date`, so the generated SQL never does
date arithmetic of its own.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta


def utc_today() -> date:
    """Return the current UTC calendar date."""

    return datetime.now(UTC).date()


def max_lookback_days(*, today: date | None = None) -> int:
    """Return the largest day count that still yields a representable cutoff date."""

    return ((today or utc_today()) - date.min).days


def cutoff_date(days: int, *, today: date | None = None) -> date:
    """Return the calendar date `days` days before `today` (UTC today by default).

    Rows qualify when their run date is strictly after this date.

    Raises:
        ValueError: If `days` is not positive or reaches before `date.min`.
    """

    if days <= 0:
        raise ValueError("days must be positive")
    today = today or utc_today()
    if days > max_lookback_days(today=today):
        raise ValueError(f"days is too large for a calendar date: {days}")
    return today - timedelta(days=days)
