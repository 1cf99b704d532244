"""
freemodule/orm/note.py
Uploaded class notes
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from freemodule.orm.base import Base, utcnow


class Note(Base):
    """
    A shared document.

    file_url always refers to a file in the upload directory while the row
    exists; the note service keeps the two in step.
    """
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id = Column(
        Integer,
        ForeignKey("subjects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    file_url = Column(String(512), nullable=False)
    upload_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    owner = relationship("User", back_populates="notes")

    __table_args__ = (
        Index("ix_notes_upload_date", "upload_date"),
    )

    def __repr__(self):
        return f"<Note(id={self.id}, title='{self.title}')>"
