"""
freemodule/orm/qa.py
Questions and their answers
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey

from freemodule.orm.base import Base, utcnow


class QAPost(Base):
    __tablename__ = "qa_posts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class QAAnswer(Base):
    """Answers are append-only."""
    __tablename__ = "qa_answers"

    id = Column(Integer, primary_key=True, index=True)
    qa_post_id = Column(
        Integer,
        ForeignKey("qa_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    answer = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
