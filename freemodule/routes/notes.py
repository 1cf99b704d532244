"""
freemodule/routes/notes.py
Shared class notes

Reads are public. Upload needs a bearer token; update and delete are
owner-only and report a note owned by someone else as not found.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Path, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.database import get_db
from freemodule.dependencies import get_note_service
from freemodule.schemas.common import MessageResponse, Page, Pagination, pagination
from freemodule.schemas.notes import NoteResponse
from freemodule.security.dependencies import get_current_user
from freemodule.security.rate_limit import action_limit
from freemodule.security.tokens import TokenUser
from freemodule.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["Notes"])


@router.post("/upload", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
@action_limit
async def upload_note(
    request: Request,
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    subject_id: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
):
    """
    Upload a document (PDF, DOC, DOCX, PPT, PPTX; 5 MB max) as a new note.
    """
    note = await notes.create(
        db,
        owner_id=current_user.id,
        upload=file,
        title=title,
        description=description,
        subject_id=subject_id,
    )
    return NoteResponse.model_validate(note)


@router.get("", response_model=Page[NoteResponse])
async def list_notes(
    page: Pagination = Depends(pagination),
    subject_id: Optional[int] = Query(None, ge=1),
    user_id: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    notes: NoteService = Depends(get_note_service),
):
    """Newest first, with uploader name, like count and comment count."""
    rows = await notes.list(db, page.limit, page.offset, subject_id=subject_id, user_id=user_id)
    return Page[NoteResponse](
        items=[NoteResponse.model_validate(r) for r in rows],
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    notes: NoteService = Depends(get_note_service),
):
    return NoteResponse.model_validate(await notes.get(db, note_id))


@router.put("/{note_id}", response_model=NoteResponse)
@action_limit
async def update_note(
    request: Request,
    note_id: int = Path(..., ge=1),
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    subject_id: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
):
    """
    Change title, description, subject and/or replace the file.

    The previous file is removed only after the update has committed.
    """
    note = await notes.update(
        db,
        note_id,
        owner_id=current_user.id,
        title=title,
        description=description,
        subject_id=subject_id,
        upload=file,
    )
    return NoteResponse.model_validate(note)


@router.delete("/{note_id}", response_model=MessageResponse)
@action_limit
async def delete_note(
    request: Request,
    note_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
):
    await notes.delete(db, note_id, owner_id=current_user.id)
    return MessageResponse(message="Note deleted successfully")
