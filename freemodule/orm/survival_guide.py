"""
freemodule/orm/survival_guide.py
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey

from freemodule.orm.base import Base, utcnow


class SurvivalGuide(Base):
    __tablename__ = "survival_guides"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
