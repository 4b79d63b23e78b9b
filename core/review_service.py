"""
Iwry Review – Review recording
===============================
Caller-side glue between the pure scheduler and the store: validate the
outcome, load the item, compute the patch, write it atomically, keep the
audit log, and report simple queue statistics.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from core import review_store
from core.config import DEFAULT_CONFIG, SchedulerConfig
from core.srs_engine import as_utc, mark_mastered, record_outcome, validate_outcome
from db.models import MasteryStatus, ReviewItem, ReviewLog

log = logging.getLogger(__name__)

DEFAULT_QUEUE_LIMIT = 20


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return as_utc(now)


def record_review(
    session: Session,
    item_id: int,
    was_correct,
    *,
    now: Optional[datetime] = None,
    owner_id: Optional[str] = None,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> ReviewItem:
    """Score an item, persist its new schedule and insert a ``ReviewLog``.

    Raises ``InvalidOutcome`` for a non-bool outcome, ``ItemNotFound`` for an
    unknown (or foreign) id, and ``ConcurrentUpdate`` if the item changed
    since it was read. Nothing is committed when an error is raised.
    """
    was_correct = validate_outcome(was_correct)
    now = _now(now)

    item = review_store.get(session, item_id, owner_id=owner_id)
    patch = record_outcome(item, was_correct, now, config)
    try:
        item = review_store.update(
            session, item_id, patch, expected_version=item.version, owner_id=owner_id
        )
        session.add(
            ReviewLog(
                item_id=item_id,
                reviewed_at=now,
                was_correct=was_correct,
                times_practiced_after=patch.times_practiced,
                interval_days_after=patch.interval_days,
                mastery_after=patch.mastery_status.value,
            )
        )
        session.commit()
    except Exception:
        session.rollback()
        raise

    log.info(
        "Reviewed item %d (correct=%s) → times=%d status=%s next=%s",
        item_id, was_correct, patch.times_practiced, patch.mastery_status.value,
        patch.next_review_date,
    )
    return item


def mark_item_mastered(
    session: Session,
    item_id: int,
    *,
    now: Optional[datetime] = None,
    owner_id: Optional[str] = None,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> ReviewItem:
    """Retire an item: mastered, next review after the maintenance interval."""
    now = _now(now)
    patch = mark_mastered(now, config)
    try:
        item = review_store.update(session, item_id, patch, owner_id=owner_id)
        session.commit()
    except Exception:
        session.rollback()
        raise

    log.info("Marked item %d as mastered, next review %s", item_id, patch.next_review_date)
    return item


def due_items(
    session: Session,
    owner_id: str,
    *,
    limit: int = DEFAULT_QUEUE_LIMIT,
    now: Optional[datetime] = None,
) -> List[ReviewItem]:
    """Return the next review queue for *owner_id*."""
    items = review_store.query_due(session, owner_id, limit, _now(now))
    log.info("Found %d due items for %s", len(items), owner_id)
    return items


def review_stats(session: Session, owner_id: str, *, now: Optional[datetime] = None) -> dict:
    """Return quick stats for an owner: total, due, mastered, learning counts."""
    now = _now(now)
    not_mastered = or_(
        ReviewItem.mastery_status.is_(None),
        ReviewItem.mastery_status != MasteryStatus.MASTERED.value,
    )

    def _count(*criteria) -> int:
        stmt = select(func.count(ReviewItem.id)).where(ReviewItem.owner_id == owner_id, *criteria)
        return session.scalar(stmt) or 0

    total = _count()
    mastered = _count(ReviewItem.mastery_status == MasteryStatus.MASTERED.value)
    due = _count(
        not_mastered,
        or_(ReviewItem.next_review_date.is_(None), ReviewItem.next_review_date <= now),
    )
    return {"total": total, "due": due, "mastered": mastered, "learning": total - mastered}
