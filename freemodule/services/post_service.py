"""
freemodule/services/post_service.py
Community posts: experience stories, questions, answers and survival guides
"""
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.errors import NotFoundError
from freemodule.orm.experience_post import ExperiencePost
from freemodule.orm.qa import QAAnswer, QAPost
from freemodule.orm.survival_guide import SurvivalGuide
from freemodule.services.crud import CrudService

experience_posts = CrudService(
    ExperiencePost,
    "Post",
    order_by=[ExperiencePost.created_at.desc(), ExperiencePost.id.desc()],
    author_label="author_name",
)

qa_posts = CrudService(
    QAPost,
    "QA post",
    order_by=[QAPost.created_at.desc(), QAPost.id.desc()],
    author_label="author_name",
)

# Oldest first so a thread reads top to bottom.
qa_answers = CrudService(
    QAAnswer,
    "Answer",
    order_by=[QAAnswer.created_at.asc(), QAAnswer.id.asc()],
    author_label="answerer_name",
)

survival_guides = CrudService(
    SurvivalGuide,
    "Guide",
    order_by=[SurvivalGuide.created_at.desc(), SurvivalGuide.id.desc()],
    author_label="author_name",
)


async def add_answer(db: AsyncSession, post_id: int, user_id: int, answer: str) -> dict:
    if not await qa_posts.exists(db, post_id):
        raise NotFoundError("QA post")
    return await qa_answers.create(db, {"qa_post_id": post_id, "answer": answer}, owner_id=user_id)


async def list_answers(db: AsyncSession, post_id: int, limit: int, offset: int):
    if not await qa_posts.exists(db, post_id):
        raise NotFoundError("QA post")
    return await qa_answers.list(db, limit, offset, filters={"qa_post_id": post_id})
