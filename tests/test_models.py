"""
Tests for SQLAlchemy models – item defaults, status coercion, cascade deletes.
"""

import pytest
from sqlalchemy import text

from db.models import ItemKind, MasteryStatus, ReviewItem, ReviewLog


class TestReviewItemDefaults:
    def test_schedule_defaults(self, session):
        item = ReviewItem(owner_id="u1", prompt="eu sou cansado", answer="eu estou cansado")
        session.add(item)
        session.commit()

        assert item.id is not None
        assert item.kind == ItemKind.CORRECTION.value
        assert item.times_practiced == 0
        assert item.mastery_status == MasteryStatus.LEARNING.value
        assert item.next_review_date is None
        assert item.last_practiced_at is None
        assert item.version == 0
        assert item.created_at is not None

    def test_review_log_creation(self, session):
        item = ReviewItem(owner_id="u1", kind="vocabulary", prompt="saudade", answer="longing")
        session.add(item)
        session.flush()

        log = ReviewLog(item_id=item.id, was_correct=True, times_practiced_after=1,
                        interval_days_after=1, mastery_after="learning")
        session.add(log)
        session.commit()

        assert log.id is not None
        assert item.review_logs == [log]


class TestCascade:
    def test_deleting_item_removes_logs(self, session):
        item = ReviewItem(owner_id="u1", prompt="a gente vamos", answer="a gente vai")
        session.add(item)
        session.flush()
        session.add(ReviewLog(item_id=item.id, was_correct=False))
        session.commit()

        session.delete(item)
        session.commit()
        assert session.query(ReviewLog).count() == 0

    def test_foreign_keys_enforced(self, session):
        assert session.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestMasteryStatus:
    def test_coerce_none_is_learning(self):
        assert MasteryStatus.coerce(None) is MasteryStatus.LEARNING

    def test_coerce_stored_strings(self):
        assert MasteryStatus.coerce("mastered") is MasteryStatus.MASTERED
        assert MasteryStatus.coerce("learning") is MasteryStatus.LEARNING

    def test_unknown_value_raises(self):
        with pytest.raises(ValueError):
            MasteryStatus.coerce("forgotten")
