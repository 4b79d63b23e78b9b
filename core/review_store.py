"""
Iwry Review – Review item store
================================
Database access for review items: lookup, atomic schedule updates, the
due-queue query and item creation. Functions flush but never commit;
transaction boundaries belong to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select, update as sql_update
from sqlalchemy.orm import Session

from core.errors import ConcurrentUpdate, ItemNotFound
from core.srs_engine import ReviewPatch, as_utc
from db.models import ItemKind, MasteryStatus, ReviewItem

log = logging.getLogger(__name__)


# ── Lookup ────────────────────────────────────────────────────────────

def get(
    session: Session,
    item_id: int,
    *,
    owner_id: Optional[str] = None,
    refresh: bool = False,
) -> ReviewItem:
    """Return the item with *item_id*, optionally scoped to *owner_id*.

    With *refresh* the row is re-read from the database instead of the
    identity map. Raises :class:`ItemNotFound` if it does not exist or
    belongs to someone else.
    """
    item = session.get(ReviewItem, item_id, populate_existing=refresh)
    if item is None or (owner_id is not None and item.owner_id != owner_id):
        raise ItemNotFound(item_id)
    return item


# ── Update ────────────────────────────────────────────────────────────

def update(
    session: Session,
    item_id: int,
    patch: ReviewPatch,
    *,
    expected_version: Optional[int] = None,
    owner_id: Optional[str] = None,
) -> ReviewItem:
    """Apply *patch* to one item in a single conditional UPDATE.

    When *expected_version* is given the row is only written if its version
    still matches, otherwise :class:`ConcurrentUpdate` is raised. Every
    successful write bumps the version.
    """
    stmt = sql_update(ReviewItem).where(ReviewItem.id == item_id)
    if owner_id is not None:
        stmt = stmt.where(ReviewItem.owner_id == owner_id)
    if expected_version is not None:
        stmt = stmt.where(ReviewItem.version == expected_version)
    stmt = stmt.values(
        **patch.as_values(), version=ReviewItem.version + 1
    ).execution_options(synchronize_session=False)

    result = session.execute(stmt)
    if result.rowcount == 0:
        # Distinguish a missing row from a lost race
        get(session, item_id, owner_id=owner_id, refresh=True)
        raise ConcurrentUpdate(item_id, expected_version)

    session.flush()
    return session.get(ReviewItem, item_id, populate_existing=True)


# ── Due queue ─────────────────────────────────────────────────────────

def query_due(session: Session, owner_id: str, limit: int, now: datetime) -> List[ReviewItem]:
    """Due items for *owner_id*, most urgent first, at most *limit*.

    Same filter and ordering as :func:`core.srs_engine.select_due`: mastered
    and future-scheduled items are excluded, unscheduled items lead, then
    oldest due date, then oldest ``created_at``.
    """
    if limit <= 0:
        return []
    now = as_utc(now)
    stmt = (
        select(ReviewItem)
        .where(
            ReviewItem.owner_id == owner_id,
            # NULL status counts as learning; a bare != would drop those rows
            or_(
                ReviewItem.mastery_status.is_(None),
                ReviewItem.mastery_status != MasteryStatus.MASTERED.value,
            ),
            or_(
                ReviewItem.next_review_date.is_(None),
                ReviewItem.next_review_date <= now,
            ),
        )
        .order_by(
            ReviewItem.next_review_date.asc().nulls_first(),
            ReviewItem.created_at.asc(),
            ReviewItem.id.asc(),
        )
        .limit(limit)
    )
    return list(session.scalars(stmt).all())


# ── Create ────────────────────────────────────────────────────────────

def add_item(
    session: Session,
    owner_id: str,
    kind: ItemKind,
    prompt: str,
    answer: str = "",
    *,
    explanation: Optional[str] = None,
    category: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> ReviewItem:
    """Record a new correction or vocabulary card, due immediately.

    Vocabulary is unique per owner and word: saving a word the owner already
    has returns the existing card untouched.
    """
    kind = ItemKind(kind)
    prompt = prompt.strip()

    if kind is ItemKind.VOCABULARY:
        existing = session.scalars(
            select(ReviewItem).where(
                ReviewItem.owner_id == owner_id,
                ReviewItem.kind == ItemKind.VOCABULARY.value,
                ReviewItem.prompt == prompt,
            )
        ).first()
        if existing is not None:
            log.info("Vocabulary %r already saved for %s (item %d)", prompt, owner_id, existing.id)
            return existing

    item = ReviewItem(
        owner_id=owner_id,
        kind=kind.value,
        prompt=prompt,
        answer=answer.strip(),
        explanation=explanation,
        category=category,
        times_practiced=0,
        mastery_status=MasteryStatus.LEARNING.value,
        version=0,
    )
    if created_at is not None:
        item.created_at = as_utc(created_at)
    session.add(item)
    session.flush()
    log.info("Added %s item %d for %s: %r", kind.value, item.id, owner_id, prompt)
    return item
