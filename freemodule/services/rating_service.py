"""
freemodule/services/rating_service.py
Like / unlike toggle

The toggle runs in one transaction:

1. DELETE the caller's rating row; if one was removed the result is "unliked".
2. Otherwise INSERT ... ON CONFLICT (note_id, user_id) DO NOTHING; if a row
   was inserted the result is "liked".
3. If the insert was ignored, another request liked the note between steps
   1 and 2. Start over so the two requests serialize as like then unlike.

The unique constraint on (note_id, user_id) is what guarantees two concurrent
toggles can never both report "liked".
"""
import logging
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.errors import NotFoundError, ServiceUnavailableError
from freemodule.orm.note import Note
from freemodule.orm.rating import Rating
from freemodule.orm.user import User

logger = logging.getLogger(__name__)

MAX_TOGGLE_ATTEMPTS = 5

LIKED = "liked"
UNLIKED = "unliked"


def _insert_ignoring_duplicates(dialect_name: str, note_id: int, user_id: int):
    values = {"note_id": note_id, "user_id": user_id}
    if dialect_name == "postgresql":
        stmt = postgresql.insert(Rating).values(**values)
    elif dialect_name == "sqlite":
        stmt = sqlite.insert(Rating).values(**values)
    else:
        raise NotImplementedError(f"Rating toggle is not supported on {dialect_name}")
    return stmt.on_conflict_do_nothing(index_elements=["note_id", "user_id"]).returning(Rating.id)


async def _require_note(db: AsyncSession, note_id: int) -> None:
    found = await db.execute(select(Note.id).where(Note.id == note_id))
    if found.scalar_one_or_none() is None:
        raise NotFoundError("Note")


async def count_likes(db: AsyncSession, note_id: int) -> int:
    result = await db.execute(select(func.count(Rating.id)).where(Rating.note_id == note_id))
    return int(result.scalar_one())


async def toggle(db: AsyncSession, note_id: int, user_id: int) -> dict:
    """Flip the caller's like on a note and return the new total."""
    await _require_note(db, note_id)
    dialect_name = db.bind.dialect.name

    action = None
    try:
        for attempt in range(MAX_TOGGLE_ATTEMPTS):
            removed = await db.execute(
                delete(Rating)
                .where(Rating.note_id == note_id, Rating.user_id == user_id)
                .returning(Rating.id)
            )
            if removed.scalar_one_or_none() is not None:
                action = UNLIKED
                break

            added = await db.execute(_insert_ignoring_duplicates(dialect_name, note_id, user_id))
            if added.scalar_one_or_none() is not None:
                action = LIKED
                break

            logger.info(f"Concurrent like on note {note_id} by user {user_id}, retrying (attempt {attempt + 1})")

        if action is None:
            raise ServiceUnavailableError("Rating is busy, please retry")

        total = await count_likes(db, note_id)
        await db.commit()
    except IntegrityError:
        # the note was deleted mid-toggle
        await db.rollback()
        raise NotFoundError("Note")
    except Exception:
        await db.rollback()
        raise

    return {"action": action, "total_likes": total}


async def list_likers(db: AsyncSession, note_id: int, limit: int, offset: int) -> dict:
    """Users who like a note, most recent first."""
    await _require_note(db, note_id)
    total = await count_likes(db, note_id)
    rows = await db.execute(
        select(User.id, User.name)
        .join(Rating, Rating.user_id == User.id)
        .where(Rating.note_id == note_id)
        .order_by(Rating.id.desc())
        .limit(limit)
        .offset(offset)
    )
    items: List[dict] = [dict(row) for row in rows.mappings().all()]
    return {"items": items, "total_likes": total, "limit": limit, "offset": offset}
