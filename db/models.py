"""
Iwry Review – SQLAlchemy ORM Models
====================================
Defines the data schema: ReviewItems (grammar corrections and vocabulary
flashcards with their review-schedule fields) and ReviewLogs.
"""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MasteryStatus(str, Enum):
    LEARNING = "learning"
    MASTERED = "mastered"

    @classmethod
    def coerce(cls, value) -> "MasteryStatus":
        """Map a stored value to a status; unset counts as learning."""
        if value is None:
            return cls.LEARNING
        return cls(value)


class ItemKind(str, Enum):
    CORRECTION = "correction"
    VOCABULARY = "vocabulary"


# ---------------------------------------------------------------------------
# ReviewItem – one trackable unit of learning
# ---------------------------------------------------------------------------
class ReviewItem(Base):
    __tablename__ = "review_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(64), nullable=False)
    kind = Column(String(20), nullable=False, default=ItemKind.CORRECTION.value)

    # Content
    prompt = Column(Text, nullable=False)           # the mistake / the Portuguese word
    answer = Column(Text, nullable=False, default="")  # the correction / the translation
    explanation = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)   # grammar category, e.g. "gender agreement"

    # Scheduling fields
    times_practiced = Column(Integer, nullable=False, default=0)
    mastery_status = Column(String(20), nullable=True, default=MasteryStatus.LEARNING.value)
    next_review_date = Column(DateTime(timezone=True), nullable=True)  # NULL = due now
    last_practiced_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Relationships
    review_logs = relationship(
        "ReviewLog", back_populates="item", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_review_items_owner_due", "owner_id", "mastery_status", "next_review_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<ReviewItem id={self.id} kind={self.kind} prompt={self.prompt!r} "
            f"next_review_date={self.next_review_date}>"
        )


# ---------------------------------------------------------------------------
# ReviewLog – audit trail for every review action
# ---------------------------------------------------------------------------
class ReviewLog(Base):
    __tablename__ = "review_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(Integer, ForeignKey("review_items.id", ondelete="CASCADE"), nullable=False)
    reviewed_at = Column(DateTime(timezone=True), default=_utcnow)
    was_correct = Column(Boolean, nullable=False)
    times_practiced_after = Column(Integer, nullable=True)
    interval_days_after = Column(Integer, nullable=True)
    mastery_after = Column(String(20), nullable=True)

    # Relationship
    item = relationship("ReviewItem", back_populates="review_logs")

    def __repr__(self) -> str:
        return f"<ReviewLog item_id={self.item_id} correct={self.was_correct} at={self.reviewed_at}>"
