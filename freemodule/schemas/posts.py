"""
freemodule/schemas/posts.py
Experience posts, Q&A and survival guides
"""
from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, Field, HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from freemodule.schemas.common import CleanText, RequiredText

_http_url = TypeAdapter(HttpUrl)


def _valid_url(value: str) -> str:
    try:
        return str(_http_url.validate_python(value))
    except PydanticValidationError:
        raise ValueError("image_url must be a valid URL")


ImageUrl = Annotated[str, AfterValidator(_valid_url)]

CONTENT_MAX_LENGTH = 10000


class ExperienceCreate(BaseModel):
    title: Optional[RequiredText] = Field(None, max_length=255)
    content: RequiredText = Field(..., max_length=CONTENT_MAX_LENGTH)
    image_url: Optional[ImageUrl] = Field(None, max_length=512)


class ExperienceUpdate(BaseModel):
    title: Optional[RequiredText] = Field(None, max_length=255)
    content: Optional[RequiredText] = Field(None, max_length=CONTENT_MAX_LENGTH)
    image_url: Optional[ImageUrl] = Field(None, max_length=512)


class ExperienceResponse(BaseModel):
    id: int
    user_id: int
    title: Optional[CleanText] = None
    content: CleanText
    image_url: Optional[str] = None
    created_at: datetime
    author_name: Optional[CleanText] = None


class QuestionCreate(BaseModel):
    question: RequiredText = Field(..., max_length=5000)


class QuestionResponse(BaseModel):
    id: int
    user_id: int
    question: CleanText
    created_at: datetime
    author_name: Optional[CleanText] = None


class AnswerCreate(BaseModel):
    answer: RequiredText = Field(..., max_length=5000)


class AnswerResponse(BaseModel):
    id: int
    qa_post_id: int
    user_id: int
    answer: CleanText
    created_at: datetime
    answerer_name: Optional[CleanText] = None


class GuideCreate(BaseModel):
    title: RequiredText = Field(..., max_length=255)
    content: RequiredText = Field(..., max_length=CONTENT_MAX_LENGTH)


class GuideUpdate(BaseModel):
    title: Optional[RequiredText] = Field(None, max_length=255)
    content: Optional[RequiredText] = Field(None, max_length=CONTENT_MAX_LENGTH)


class GuideResponse(BaseModel):
    id: int
    user_id: int
    title: CleanText
    content: CleanText
    created_at: datetime
    author_name: Optional[CleanText] = None
