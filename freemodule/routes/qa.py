"""
freemodule/routes/qa.py
Questions and answers

Questions are owner-editable; answers are append-only.
"""
from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.database import get_db
from freemodule.schemas.common import MessageResponse, Page, Pagination, pagination
from freemodule.schemas.posts import AnswerCreate, AnswerResponse, QuestionCreate, QuestionResponse
from freemodule.security.dependencies import get_current_user
from freemodule.security.rate_limit import action_limit
from freemodule.security.tokens import TokenUser
from freemodule.services import post_service
from freemodule.services.post_service import qa_posts

router = APIRouter(prefix="/qa", tags=["Q&A"])


@router.get("", response_model=Page[QuestionResponse])
async def list_questions(
    page: Pagination = Depends(pagination),
    db: AsyncSession = Depends(get_db),
):
    rows = await qa_posts.list(db, page.limit, page.offset)
    return Page[QuestionResponse](
        items=[QuestionResponse.model_validate(r) for r in rows],
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{post_id}", response_model=QuestionResponse)
async def get_question(
    post_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
):
    return QuestionResponse.model_validate(await qa_posts.get(db, post_id))


@router.post("", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
@action_limit
async def ask_question(
    request: Request,
    payload: QuestionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    post = await qa_posts.create(db, payload.model_dump(), owner_id=current_user.id)
    return QuestionResponse.model_validate(post)


@router.put("/{post_id}", response_model=QuestionResponse)
@action_limit
async def edit_question(
    request: Request,
    payload: QuestionCreate,
    post_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    post = await qa_posts.update(db, post_id, payload.model_dump(), owner_id=current_user.id)
    return QuestionResponse.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse)
@action_limit
async def delete_question(
    request: Request,
    post_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    """Removes the question and all of its answers."""
    await qa_posts.delete(db, post_id, owner_id=current_user.id)
    return MessageResponse(message="QA post deleted successfully")


@router.get("/{post_id}/answers", response_model=Page[AnswerResponse])
async def list_answers(
    post_id: int = Path(..., ge=1),
    page: Pagination = Depends(pagination),
    db: AsyncSession = Depends(get_db),
):
    """Oldest first"""
    rows = await post_service.list_answers(db, post_id, page.limit, page.offset)
    return Page[AnswerResponse](
        items=[AnswerResponse.model_validate(r) for r in rows],
        limit=page.limit,
        offset=page.offset,
    )


@router.post("/{post_id}/answers", response_model=AnswerResponse, status_code=status.HTTP_201_CREATED)
@action_limit
async def answer_question(
    request: Request,
    payload: AnswerCreate,
    post_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
):
    answer = await post_service.add_answer(db, post_id, current_user.id, payload.answer)
    return AnswerResponse.model_validate(answer)
