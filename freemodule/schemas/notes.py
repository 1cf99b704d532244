"""
freemodule/schemas/notes.py
Note responses (requests arrive as multipart form fields)
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from freemodule.schemas.common import CleanText


class NoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    subject_id: Optional[int] = None
    title: CleanText
    description: Optional[CleanText] = None
    file_url: str
    upload_date: datetime
    uploader_name: Optional[CleanText] = None
    likes: int = 0
    comments_count: int = 0
