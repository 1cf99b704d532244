"""
freemodule/routes/ratings.py
Likes on a note
"""
from fastapi import APIRouter, Depends, Path, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.database import get_db
from freemodule.schemas.common import Pagination, pagination
from freemodule.schemas.ratings import LikerPage, ToggleResult
from freemodule.security.dependencies import get_current_user
from freemodule.security.rate_limit import action_limit
from freemodule.security.tokens import TokenUser
from freemodule.services import rating_service

router = APIRouter(prefix="/notes/{note_id}", tags=["Ratings"])


@router.post(
    "/rate",
    response_model=ToggleResult,
    responses={201: {"model": ToggleResult, "description": "Liked"}},
)
@action_limit
async def toggle_rating(
    request: Request,
    response: Response,
    note_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    """Like the note, or unlike it if already liked. 201 when liked, 200 when unliked."""
    result = await rating_service.toggle(db, note_id, current_user.id)
    if result["action"] == rating_service.LIKED:
        response.status_code = status.HTTP_201_CREATED
    return ToggleResult(**result)


@router.get("/ratings", response_model=LikerPage)
async def list_ratings(
    note_id: int = Path(..., ge=1),
    page: Pagination = Depends(pagination),
    db: AsyncSession = Depends(get_db),
):
    return LikerPage.model_validate(await rating_service.list_likers(db, note_id, page.limit, page.offset))
