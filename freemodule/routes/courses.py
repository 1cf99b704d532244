"""
freemodule/routes/courses.py
Course reference data
"""
from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.database import get_db
from freemodule.schemas.common import MessageResponse, Page, Pagination, pagination
from freemodule.schemas.reference import CourseCreate, CourseResponse, CourseUpdate
from freemodule.security.dependencies import get_current_user
from freemodule.security.rate_limit import action_limit
from freemodule.security.tokens import TokenUser
from freemodule.services.reference_service import courses

router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get("", response_model=Page[CourseResponse])
async def list_courses(
    page: Pagination = Depends(pagination),
    db: AsyncSession = Depends(get_db),
):
    """Ordered by course code"""
    rows = await courses.list(db, page.limit, page.offset)
    return Page[CourseResponse](
        items=[CourseResponse.model_validate(r) for r in rows],
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(
    course_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
):
    return CourseResponse.model_validate(await courses.get(db, course_id))


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
@action_limit
async def create_course(
    request: Request,
    payload: CourseCreate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    course = await courses.create(db, payload.model_dump())
    return CourseResponse.model_validate(course)


@router.put("/{course_id}", response_model=CourseResponse)
@action_limit
async def update_course(
    request: Request,
    payload: CourseUpdate,
    course_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    course = await courses.update(db, course_id, payload.model_dump(exclude_none=True))
    return CourseResponse.model_validate(course)


@router.delete("/{course_id}", response_model=MessageResponse)
@action_limit
async def delete_course(
    request: Request,
    course_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    """Also removes the course's subjects."""
    await courses.delete(db, course_id)
    return MessageResponse(message="Course deleted successfully")
