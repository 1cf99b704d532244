"""
freemodule/orm/course.py
Degree programs (reference data)
"""
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from freemodule.orm.base import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    course_code = Column(String(50), nullable=False, unique=True, index=True)  # "BSIT"
    course_name = Column(String(255), nullable=False)

    subjects = relationship(
        "Subject",
        back_populates="course",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Course(id={self.id}, code='{self.course_code}')>"
