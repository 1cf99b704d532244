"""
freemodule/routes/subjects.py
Subject reference data
"""
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.database import get_db
from freemodule.schemas.common import MessageResponse, Page, Pagination, pagination
from freemodule.schemas.reference import SubjectCreate, SubjectResponse, SubjectUpdate
from freemodule.security.dependencies import get_current_user
from freemodule.security.rate_limit import action_limit
from freemodule.security.tokens import TokenUser
from freemodule.services import reference_service
from freemodule.services.reference_service import subjects

router = APIRouter(prefix="/subjects", tags=["Subjects"])


def _page(rows, page: Pagination) -> Page[SubjectResponse]:
    return Page[SubjectResponse](
        items=[SubjectResponse.model_validate(r) for r in rows],
        limit=page.limit,
        offset=page.offset,
    )


@router.get("", response_model=Page[SubjectResponse])
async def list_subjects(
    page: Pagination = Depends(pagination),
    course_id: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Ordered by subject name"""
    rows = await subjects.list(db, page.limit, page.offset, filters={"course_id": course_id})
    return _page(rows, page)


@router.get("/course/{course_id}", response_model=Page[SubjectResponse])
async def list_subjects_for_course(
    course_id: int = Path(..., ge=1),
    page: Pagination = Depends(pagination),
    db: AsyncSession = Depends(get_db),
):
    rows = await reference_service.list_subjects_for_course(db, course_id, page.limit, page.offset)
    return _page(rows, page)


@router.get("/{subject_id}", response_model=SubjectResponse)
async def get_subject(
    subject_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
):
    return SubjectResponse.model_validate(await subjects.get(db, subject_id))


@router.post("", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
@action_limit
async def create_subject(
    request: Request,
    payload: SubjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    """409 if the name is taken within the course, 400 FOREIGN_KEY if the course is unknown."""
    subject = await subjects.create(db, payload.model_dump())
    return SubjectResponse.model_validate(subject)


@router.put("/{subject_id}", response_model=SubjectResponse)
@action_limit
async def update_subject(
    request: Request,
    payload: SubjectUpdate,
    subject_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    subject = await subjects.update(db, subject_id, payload.model_dump(exclude_none=True))
    return SubjectResponse.model_validate(subject)


@router.delete("/{subject_id}", response_model=MessageResponse)
@action_limit
async def delete_subject(
    request: Request,
    subject_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    await subjects.delete(db, subject_id)
    return MessageResponse(message="Subject deleted successfully")
