"""
freemodule/routes/experience.py
Experience stories
"""
from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.database import get_db
from freemodule.schemas.common import MessageResponse, Page, Pagination, pagination
from freemodule.schemas.posts import ExperienceCreate, ExperienceResponse, ExperienceUpdate
from freemodule.security.dependencies import get_current_user
from freemodule.security.rate_limit import action_limit
from freemodule.security.tokens import TokenUser
from freemodule.services.post_service import experience_posts

router = APIRouter(prefix="/experience", tags=["Experience"])


@router.get("", response_model=Page[ExperienceResponse])
async def list_posts(
    page: Pagination = Depends(pagination),
    db: AsyncSession = Depends(get_db),
):
    rows = await experience_posts.list(db, page.limit, page.offset)
    return Page[ExperienceResponse](
        items=[ExperienceResponse.model_validate(r) for r in rows],
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{post_id}", response_model=ExperienceResponse)
async def get_post(
    post_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
):
    return ExperienceResponse.model_validate(await experience_posts.get(db, post_id))


@router.post("", response_model=ExperienceResponse, status_code=status.HTTP_201_CREATED)
@action_limit
async def create_post(
    request: Request,
    payload: ExperienceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    post = await experience_posts.create(db, payload.model_dump(), owner_id=current_user.id)
    return ExperienceResponse.model_validate(post)


@router.put("/{post_id}", response_model=ExperienceResponse)
@action_limit
async def update_post(
    request: Request,
    payload: ExperienceUpdate,
    post_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    post = await experience_posts.update(
        db, post_id, payload.model_dump(exclude_none=True), owner_id=current_user.id
    )
    return ExperienceResponse.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse)
@action_limit
async def delete_post(
    request: Request,
    post_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    await experience_posts.delete(db, post_id, owner_id=current_user.id)
    return MessageResponse(message="Post deleted successfully")
