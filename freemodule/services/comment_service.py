"""
freemodule/services/comment_service.py
Comments on notes
"""
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.errors import NotFoundError
from freemodule.orm.comment import Comment
from freemodule.orm.note import Note
from freemodule.services.crud import CrudService

comments = CrudService(
    Comment,
    "Comment",
    order_by=[Comment.created_at.desc(), Comment.id.desc()],
    author_label="user_name",
    reference_message="Note does not exist",
)

_notes = CrudService(Note, "Note", order_by=[Note.id])


async def _require_note(db: AsyncSession, note_id: int) -> None:
    if not await _notes.exists(db, note_id):
        raise NotFoundError("Note")


async def add_comment(db: AsyncSession, note_id: int, user_id: int, text: str) -> dict:
    await _require_note(db, note_id)
    return await comments.create(db, {"note_id": note_id, "comment_text": text}, owner_id=user_id)


async def list_comments(db: AsyncSession, note_id: int, limit: int, offset: int):
    await _require_note(db, note_id)
    return await comments.list(db, limit, offset, filters={"note_id": note_id})


async def delete_comment(db: AsyncSession, note_id: int, comment_id: int, user_id: int) -> dict:
    """Author-only; a comment under a different note counts as missing."""
    return await comments.delete(db, comment_id, owner_id=user_id, note_id=note_id)
