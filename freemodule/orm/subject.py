"""
freemodule/orm/subject.py
Subjects offered under a course
"""
from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from freemodule.orm.base import Base


class Subject(Base):
    """
    Subject names are unique within a course. Removing the course removes its
    subjects; notes filed under a removed subject keep existing with no subject.
    """
    __tablename__ = "subjects"
    __table_args__ = (
        UniqueConstraint("course_id", "subject_name", name="uq_subject_course_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_name = Column(String(255), nullable=False)

    course = relationship("Course", back_populates="subjects")

    def __repr__(self):
        return f"<Subject(id={self.id}, name='{self.subject_name}')>"
