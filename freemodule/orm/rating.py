"""
freemodule/orm/rating.py
Likes on notes
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint

from freemodule.orm.base import Base, utcnow


class Rating(Base):
    """
    Presence of a row means the user currently likes the note.

    The (note_id, user_id) unique constraint is what makes the like toggle
    safe under concurrent requests; it must never be dropped.
    """
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("note_id", "user_id", name="uq_rating_note_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    note_id = Column(
        Integer,
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
