"""
Iwry Review – Spaced Repetition Engine
=======================================
Pure scheduling decisions for review items: what a review outcome does to
an item's practice count, mastery status and next review date, and which
items are due and in what order.

Nothing in here touches the database or reads the clock; callers pass
``now`` in and persist the returned :class:`ReviewPatch` themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, TypeVar

from core.config import DEFAULT_CONFIG, SchedulerConfig
from core.errors import InvalidOutcome
from db.models import MasteryStatus

log = logging.getLogger(__name__)

T = TypeVar("T")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReviewPatch:
    """New scheduling state for one item. ``None`` fields are left unchanged."""

    mastery_status: MasteryStatus
    next_review_date: datetime
    times_practiced: Optional[int] = None
    last_practiced_at: Optional[datetime] = None
    interval_days: int = 0

    def as_values(self) -> dict:
        """Column values to write to the store, with datetimes in UTC."""
        values = {
            "mastery_status": self.mastery_status.value,
            "next_review_date": as_utc(self.next_review_date),
        }
        if self.times_practiced is not None:
            values["times_practiced"] = self.times_practiced
        if self.last_practiced_at is not None:
            values["last_practiced_at"] = as_utc(self.last_practiced_at)
        return values


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise to aware UTC; naive values (as SQLite returns them) are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_outcome(value) -> bool:
    """Return *value* if it is a real bool, else raise :class:`InvalidOutcome`.

    Truthy stand-ins like ``1`` or ``"true"`` are rejected.
    """
    if not isinstance(value, bool):
        raise InvalidOutcome(value)
    return value


def interval_for(times_practiced: int, config: SchedulerConfig = DEFAULT_CONFIG) -> int:
    """Days until the next review after the *times_practiced*-th correct answer.

    The schedule is clamped to its last entry, so intervals stop growing once
    the table is exhausted.
    """
    index = max(times_practiced - 1, 0)
    return config.schedule[min(index, len(config.schedule) - 1)]


# ---------------------------------------------------------------------------
# Outcome processing
# ---------------------------------------------------------------------------

def record_outcome(
    item,
    was_correct: bool,
    now: datetime,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> ReviewPatch:
    """Compute an item's new schedule after one review attempt.

    Parameters
    ----------
    item
        Anything with ``times_practiced`` and ``mastery_status`` attributes
        (usually a :class:`db.models.ReviewItem`). ``None`` counts as 0 /
        learning.
    was_correct : bool
        Outcome of the attempt.
    now : datetime
        Time of the attempt.

    Returns
    -------
    ReviewPatch
        A wrong answer resets progress and schedules a retry after
        ``failure_interval_days``. A correct answer increments the count and
        schedules by the interval table; reaching ``mastery_threshold``
        promotes the item to mastered.
    """
    if not was_correct:
        new_times = 0
        interval = config.failure_interval_days
        status = MasteryStatus.LEARNING
    else:
        new_times = (item.times_practiced or 0) + 1
        interval = interval_for(new_times, config)
        if new_times >= config.mastery_threshold:
            status = MasteryStatus.MASTERED
        else:
            status = MasteryStatus.LEARNING

    patch = ReviewPatch(
        times_practiced=new_times,
        mastery_status=status,
        next_review_date=now + timedelta(days=interval),
        last_practiced_at=now,
        interval_days=interval,
    )
    log.debug(
        "Outcome correct=%s: times=%d → %d status=%s interval=%dd",
        was_correct, item.times_practiced or 0, new_times, status.value, interval,
    )
    return patch


def mark_mastered(now: datetime, config: SchedulerConfig = DEFAULT_CONFIG) -> ReviewPatch:
    """Manual override: retire an item to the long-horizon maintenance interval."""
    return ReviewPatch(
        mastery_status=MasteryStatus.MASTERED,
        next_review_date=now + timedelta(days=config.maintenance_interval_days),
        interval_days=config.maintenance_interval_days,
    )


# ---------------------------------------------------------------------------
# Due queue
# ---------------------------------------------------------------------------

def is_due(item, now: datetime) -> bool:
    """True if *item* belongs in the review queue at *now*."""
    if MasteryStatus.coerce(item.mastery_status) is MasteryStatus.MASTERED:
        return False
    next_review = as_utc(item.next_review_date)
    return next_review is None or next_review <= as_utc(now)


def _due_order(item):
    next_review = as_utc(item.next_review_date)
    created = as_utc(item.created_at) or _EPOCH
    # Never-scheduled items first, then oldest due date, then oldest item
    return (next_review is not None, next_review or _EPOCH, created)


def select_due(items: Iterable[T], limit: int, now: datetime) -> List[T]:
    """Return at most *limit* due items, most urgent first.

    Mastered items and items scheduled after *now* are dropped. Unscheduled
    items come first, then ascending ``next_review_date``; ``created_at``
    breaks ties. The sort is stable so repeated calls agree.
    """
    due = sorted((item for item in items if is_due(item, now)), key=_due_order)
    return due[: max(limit, 0)]
