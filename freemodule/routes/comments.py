"""
freemodule/routes/comments.py
Comments on a note
"""
from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.database import get_db
from freemodule.schemas.comments import CommentCreate, CommentDeleted, CommentResponse
from freemodule.schemas.common import Page, Pagination, pagination
from freemodule.security.dependencies import get_current_user
from freemodule.security.rate_limit import action_limit
from freemodule.security.tokens import TokenUser
from freemodule.services import comment_service

router = APIRouter(prefix="/notes/{note_id}/comments", tags=["Comments"])


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
@action_limit
async def add_comment(
    request: Request,
    payload: CommentCreate,
    note_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    comment = await comment_service.add_comment(db, note_id, current_user.id, payload.comment_text)
    return CommentResponse.model_validate(comment)


@router.get("", response_model=Page[CommentResponse])
async def list_comments(
    note_id: int = Path(..., ge=1),
    page: Pagination = Depends(pagination),
    db: AsyncSession = Depends(get_db),
):
    rows = await comment_service.list_comments(db, note_id, page.limit, page.offset)
    return Page[CommentResponse](
        items=[CommentResponse.model_validate(r) for r in rows],
        limit=page.limit,
        offset=page.offset,
    )


@router.delete("/{comment_id}", response_model=CommentDeleted)
@action_limit
async def delete_comment(
    request: Request,
    note_id: int = Path(..., ge=1),
    comment_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    """Only the author may delete; anyone else gets 404."""
    deleted = await comment_service.delete_comment(db, note_id, comment_id, current_user.id)
    return CommentDeleted(
        message="Comment deleted successfully",
        deleted=CommentResponse.model_validate(deleted),
    )
