"""
freemodule/schemas/ratings.py
"""
from typing import List, Literal

from pydantic import BaseModel

from freemodule.schemas.common import CleanText


class ToggleResult(BaseModel):
    action: Literal["liked", "unliked"]
    total_likes: int


class Liker(BaseModel):
    id: int
    name: CleanText


class LikerPage(BaseModel):
    items: List[Liker]
    total_likes: int
    limit: int
    offset: int
