"""
freemodule/orm/experience_post.py
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey

from freemodule.orm.base import Base, utcnow


class ExperiencePost(Base):
    __tablename__ = "experience_posts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=True)
    content = Column(Text, nullable=False)
    image_url = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
