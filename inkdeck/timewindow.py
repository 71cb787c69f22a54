"""Daily time-of-day windows that may wrap past midnight."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Optional


def in_daily_window(moment: time, start: time, end: time) -> bool:
    """Return ``True`` when ``moment`` falls inside ``[start, end)``.

    A window with ``start > end`` spans midnight. ``start == end`` is an
    empty window.
    """

    moment = moment.replace(tzinfo=None)
    start = start.replace(tzinfo=None)
    end = end.replace(tzinfo=None)
    if start < end:
        return start <= moment < end
    if start > end:
        return moment >= start or moment < end
    return False


def next_occurrence(now: datetime, at: time) -> datetime:
    """First datetime strictly after ``now`` whose wall clock reads ``at``."""

    candidate = datetime.combine(now.date(), at.replace(tzinfo=None), tzinfo=now.tzinfo)
    if candidate <= now:
        candidate = datetime.combine(
            now.date() + timedelta(days=1), at.replace(tzinfo=None), tzinfo=now.tzinfo
        )
    return candidate


def seconds_between(start: datetime, end: datetime) -> int:
    """Whole elapsed seconds from ``start`` to ``end``.

    Aware datetimes are compared in UTC so DST transitions are counted.
    """

    if start.tzinfo is not None and end.tzinfo is not None:
        start = start.astimezone(timezone.utc)
        end = end.astimezone(timezone.utc)
    return int((end - start).total_seconds())


def window_end(now: datetime, start: Optional[time], end: Optional[time]) -> Optional[datetime]:
    """End of the window containing ``now``, or ``None`` when outside it."""

    if start is None or end is None:
        return None
    if not in_daily_window(now.time(), start, end):
        return None
    return next_occurrence(now, end)


def as_utc(moment: datetime) -> datetime:
    """``moment`` in UTC; naive values are taken to already be UTC."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
