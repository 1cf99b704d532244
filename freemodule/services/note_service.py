"""
freemodule/services/note_service.py
Note lifecycle

A note row and its stored file live and die together:

- create: the file is stored first; if anything after that fails (field
  validation, the insert, the commit) the new file is removed before the
  error propagates.
- update: a replacement file is stored first, the row is updated under
  `WHERE id AND user_id`, and only after the commit is the previous file
  removed. If the row is missing or not owned, the replacement is removed
  and the original file is left alone.
- delete: the row is deleted first (RETURNING its file_url), then the file.

Disk cleanup is best effort and never changes the result of the request.
"""
import logging
from typing import List, Optional

from fastapi import UploadFile
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from freemodule.errors import NoFieldsError, NotFoundError, ValidationError, translate_integrity_error
from freemodule.orm.comment import Comment
from freemodule.orm.note import Note
from freemodule.orm.rating import Rating
from freemodule.orm.user import User
from freemodule.services.file_store import FileStore, StoredFile
from freemodule.utils.sanitize import strip_markup

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 5000
SUBJECT_REFERENCE_MESSAGE = "Invalid subject_id (subject does not exist)"


def _field_error(field: str, message: str) -> ValidationError:
    return ValidationError(
        message,
        details=[{"loc": ["body", field], "msg": message, "type": "value_error"}],
    )


def clean_title(title: Optional[str]) -> str:
    cleaned = strip_markup(title)
    if not cleaned:
        raise _field_error("title", "Title is required")
    if len(cleaned) > TITLE_MAX_LENGTH:
        raise _field_error("title", f"Title must be at most {TITLE_MAX_LENGTH} characters")
    return cleaned


def clean_description(description: Optional[str]) -> Optional[str]:
    cleaned = strip_markup(description)
    if cleaned and len(cleaned) > DESCRIPTION_MAX_LENGTH:
        raise _field_error("description", f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters")
    return cleaned or None


def parse_subject_id(value: Optional[str]) -> Optional[int]:
    """Multipart fields arrive as text; blank means "no subject"."""
    if value is None or str(value).strip() == "":
        return None
    try:
        subject_id = int(str(value).strip())
    except ValueError:
        raise _field_error("subject_id", "subject_id must be a positive integer")
    if subject_id < 1:
        raise _field_error("subject_id", "subject_id must be a positive integer")
    return subject_id


def has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


class NoteService:
    def __init__(self, files: FileStore):
        self.files = files

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _detail_query(self) -> Select:
        likes = (
            select(func.count(Rating.id))
            .where(Rating.note_id == Note.id)
            .correlate(Note)
            .scalar_subquery()
        )
        comments_count = (
            select(func.count(Comment.id))
            .where(Comment.note_id == Note.id)
            .correlate(Note)
            .scalar_subquery()
        )
        return (
            select(
                *Note.__table__.c,
                User.name.label("uploader_name"),
                func.coalesce(likes, 0).label("likes"),
                func.coalesce(comments_count, 0).label("comments_count"),
            )
            .outerjoin(User, User.id == Note.user_id)
        )

    async def get(self, db: AsyncSession, note_id: int) -> dict:
        row = (await db.execute(self._detail_query().where(Note.id == note_id))).mappings().first()
        if row is None:
            raise NotFoundError("Note")
        return dict(row)

    async def list(
        self,
        db: AsyncSession,
        limit: int,
        offset: int,
        subject_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> List[dict]:
        stmt = self._detail_query()
        if subject_id is not None:
            stmt = stmt.where(Note.subject_id == subject_id)
        if user_id is not None:
            stmt = stmt.where(Note.user_id == user_id)
        stmt = stmt.order_by(Note.upload_date.desc(), Note.id.desc()).limit(limit).offset(offset)
        rows = (await db.execute(stmt)).mappings().all()
        return [dict(row) for row in rows]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        owner_id: int,
        upload: Optional[UploadFile],
        title: Optional[str],
        description: Optional[str] = None,
        subject_id: Optional[str] = None,
    ) -> dict:
        if not has_file(upload):
            raise ValidationError(
                "File is required",
                details=[{"loc": ["body", "file"], "msg": "File is required", "type": "missing"}],
            )

        stored = await self.files.store(upload)
        try:
            values = {
                "user_id": owner_id,
                "title": clean_title(title),
                "description": clean_description(description),
                "subject_id": parse_subject_id(subject_id),
                "file_url": stored.url,
            }
            result = await db.execute(insert(Note).values(**values).returning(Note.id))
            note_id = result.scalar_one()
            await db.commit()
        except IntegrityError as e:
            await self._abandon(db, stored)
            raise translate_integrity_error(e, reference_message=SUBJECT_REFERENCE_MESSAGE)
        except Exception:
            await self._abandon(db, stored)
            raise

        logger.info(f"Note {note_id} created by user {owner_id} ({stored.filename})")
        return await self.get(db, note_id)

    async def update(
        self,
        db: AsyncSession,
        note_id: int,
        owner_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        subject_id: Optional[str] = None,
        upload: Optional[UploadFile] = None,
    ) -> dict:
        stored: Optional[StoredFile] = None
        if has_file(upload):
            stored = await self.files.store(upload)

        try:
            values = {}
            if title is not None:
                values["title"] = clean_title(title)
            if description is not None:
                values["description"] = clean_description(description)
            parsed_subject = parse_subject_id(subject_id)
            if parsed_subject is not None:
                values["subject_id"] = parsed_subject
            if stored is not None:
                values["file_url"] = stored.url
            if not values:
                raise NoFieldsError("No fields provided to update")

            owned = (
                select(Note.file_url)
                .where(Note.id == note_id, Note.user_id == owner_id)
                .with_for_update()
            )
            old_file_url = (await db.execute(owned)).scalar_one_or_none()
            if old_file_url is None:
                logger.warning(f"update Note {note_id} by user {owner_id}: not found or not owned")
                raise NotFoundError("Note")

            result = await db.execute(
                update(Note)
                .where(Note.id == note_id, Note.user_id == owner_id)
                .values(**values)
                .returning(Note.id)
            )
            if result.scalar_one_or_none() is None:
                raise NotFoundError("Note")
            await db.commit()
        except IntegrityError as e:
            await self._abandon(db, stored)
            raise translate_integrity_error(e, reference_message=SUBJECT_REFERENCE_MESSAGE)
        except Exception:
            await self._abandon(db, stored)
            raise

        if stored is not None and old_file_url != stored.url:
            await self.files.delete(old_file_url)
        return await self.get(db, note_id)

    async def delete(self, db: AsyncSession, note_id: int, owner_id: int) -> str:
        """Remove the row, then its file. Returns the removed file_url."""
        result = await db.execute(
            delete(Note)
            .where(Note.id == note_id, Note.user_id == owner_id)
            .returning(Note.file_url)
        )
        file_url = result.scalar_one_or_none()
        if file_url is None:
            await db.rollback()
            logger.warning(f"delete Note {note_id} by user {owner_id}: not found or not owned")
            raise NotFoundError("Note")
        await db.commit()
        logger.info(f"Note {note_id} deleted by user {owner_id}")

        await self.files.delete(file_url)
        return file_url

    async def _abandon(self, db: AsyncSession, stored: Optional[StoredFile]) -> None:
        """Roll back and remove a file stored during the failed request."""
        await db.rollback()
        if stored is not None:
            await self.files.delete(stored.url)
