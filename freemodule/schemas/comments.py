"""
freemodule/schemas/comments.py
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from freemodule.schemas.common import CleanText, RequiredText


class CommentCreate(BaseModel):
    comment_text: RequiredText = Field(..., max_length=2000)


class CommentResponse(BaseModel):
    id: int
    note_id: int
    user_id: int
    comment_text: CleanText
    created_at: datetime
    user_name: Optional[CleanText] = None


class CommentDeleted(BaseModel):
    message: str
    deleted: CommentResponse
