"""
freemodule/schemas/common.py
Shared field types and the pagination envelope
"""
from typing import Annotated, Generic, List, Optional, TypeVar

from fastapi import Query
from pydantic import AfterValidator, BaseModel

from freemodule.utils.sanitize import strip_markup

T = TypeVar("T")

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def _required_text(value: str) -> str:
    value = strip_markup(value)
    if not value:
        raise ValueError("must not be empty")
    return value


def _clean_text(value: Optional[str]) -> Optional[str]:
    return strip_markup(value)


# Markup-free text that must still contain something once cleaned.
RequiredText = Annotated[str, AfterValidator(_required_text)]

# Markup-free text; used on every response field that carries user input.
CleanText = Annotated[str, AfterValidator(_clean_text)]


class Page(BaseModel, Generic[T]):
    """Paginated list envelope"""
    items: List[T]
    limit: int
    offset: int


class Pagination(BaseModel):
    limit: int = DEFAULT_LIMIT
    offset: int = 0


def pagination(
    limit: int = Query(DEFAULT_LIMIT, ge=1, description=f"Page size, clamped to {MAX_LIMIT}"),
    offset: int = Query(0, ge=0),
) -> Pagination:
    """Query dependency; oversize limits are clamped rather than rejected."""
    return Pagination(limit=min(limit, MAX_LIMIT), offset=offset)


class MessageResponse(BaseModel):
    message: str
