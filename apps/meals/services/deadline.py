"""
Meal cancellation deadline policy.

A meal can be cancelled (or the cancellation undone) until ``cutoff_hour``
o'clock on the day of the meal, in the institution's local time. The
current instant always comes from the server clock.
"""

from datetime import date, datetime, time, tzinfo


def cancellation_deadline(meal_date: date, cutoff_hour: int, tz: tzinfo) -> datetime:
    """Instant at which the meal slot stops being cancellable."""
    if not 0 <= cutoff_hour <= 23:
        raise ValueError(f"cutoff_hour must be between 0 and 23, got {cutoff_hour}")
    return datetime.combine(meal_date, time(hour=cutoff_hour), tzinfo=tz)


def is_cancellable(meal_date: date, now: datetime, cutoff_hour: int, tz: tzinfo) -> bool:
    """
    Whether the meal on ``meal_date`` can still be cancelled at ``now``.

    True iff ``now`` is strictly earlier than ``meal_date`` at
    ``cutoff_hour``:00:00 in ``tz``; at exactly the cutoff the slot is closed.

    Raises:
        ValueError: If ``now`` is naive or ``cutoff_hour`` is out of range
    """
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("now must be timezone-aware")
    return now < cancellation_deadline(meal_date, cutoff_hour, tz)
