"""
freemodule/routes/survival.py
Survival guides
"""
from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.database import get_db
from freemodule.schemas.common import MessageResponse, Page, Pagination, pagination
from freemodule.schemas.posts import GuideCreate, GuideResponse, GuideUpdate
from freemodule.security.dependencies import get_current_user
from freemodule.security.rate_limit import action_limit
from freemodule.security.tokens import TokenUser
from freemodule.services.post_service import survival_guides

router = APIRouter(prefix="/survival", tags=["Survival Guides"])


@router.get("", response_model=Page[GuideResponse])
async def list_guides(
    page: Pagination = Depends(pagination),
    db: AsyncSession = Depends(get_db),
):
    rows = await survival_guides.list(db, page.limit, page.offset)
    return Page[GuideResponse](
        items=[GuideResponse.model_validate(r) for r in rows],
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{guide_id}", response_model=GuideResponse)
async def get_guide(
    guide_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
):
    return GuideResponse.model_validate(await survival_guides.get(db, guide_id))


@router.post("", response_model=GuideResponse, status_code=status.HTTP_201_CREATED)
@action_limit
async def create_guide(
    request: Request,
    payload: GuideCreate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    guide = await survival_guides.create(db, payload.model_dump(), owner_id=current_user.id)
    return GuideResponse.model_validate(guide)


@router.put("/{guide_id}", response_model=GuideResponse)
@action_limit
async def update_guide(
    request: Request,
    payload: GuideUpdate,
    guide_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    guide = await survival_guides.update(
        db, guide_id, payload.model_dump(exclude_none=True), owner_id=current_user.id
    )
    return GuideResponse.model_validate(guide)


@router.delete("/{guide_id}", response_model=MessageResponse)
@action_limit
async def delete_guide(
    request: Request,
    guide_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    await survival_guides.delete(db, guide_id, owner_id=current_user.id)
    return MessageResponse(message="Guide deleted successfully")
