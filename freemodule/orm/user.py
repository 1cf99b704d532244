"""
freemodule/orm/user.py
Registered community member
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from freemodule.orm.base import Base, utcnow


class User(Base):
    """
    A student account.

    Deleting a user cascades (at the database level) to everything they own:
    notes, comments, ratings, experience posts, questions, answers and
    survival guides. Stored note files are removed by the user service.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    notes = relationship("Note", back_populates="owner", passive_deletes=True)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
