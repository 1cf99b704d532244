"""
freemodule/schemas/reference.py
Courses and subjects
"""
from typing import Optional

from pydantic import BaseModel, Field

from freemodule.schemas.common import CleanText, RequiredText


class CourseCreate(BaseModel):
    course_code: RequiredText = Field(..., max_length=50)
    course_name: RequiredText = Field(..., max_length=255)


class CourseUpdate(BaseModel):
    course_code: Optional[RequiredText] = Field(None, max_length=50)
    course_name: Optional[RequiredText] = Field(None, max_length=255)


class CourseResponse(BaseModel):
    id: int
    course_code: CleanText
    course_name: CleanText


class SubjectCreate(BaseModel):
    course_id: int = Field(..., ge=1)
    subject_name: RequiredText = Field(..., max_length=255)


class SubjectUpdate(BaseModel):
    course_id: Optional[int] = Field(None, ge=1)
    subject_name: Optional[RequiredText] = Field(None, max_length=255)


class SubjectResponse(BaseModel):
    id: int
    course_id: int
    subject_name: CleanText
