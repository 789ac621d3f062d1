"""
Item notes API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
import logging

from roadmap_tracker.api.deps import get_current_user
from roadmap_tracker.database import get_db
from roadmap_tracker.models import User
from roadmap_tracker.schemas.common import Envelope, MessageResponse
from roadmap_tracker.schemas.note import NoteCreate, NoteRead, NoteUpdate, SharedNote
from roadmap_tracker.services.note_store import NoteStore

router = APIRouter(prefix="/api/notes", tags=["notes"])
logger = logging.getLogger(__name__)


@router.post("", response_model=Envelope[NoteRead], status_code=201)
def create_note(
    payload: NoteCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Attach a note to an item; notes are private unless isPrivate is false"""
    note = NoteStore(db).create_note(user.id, payload.item_id, payload.content, payload.is_private)
    return Envelope(data=NoteRead.model_validate(note))


@router.get("/{item_id}/shared", response_model=Envelope[List[SharedNote]])
def get_shared_notes(
    item_id: str,
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Public notes other learners left on an item

    Only non-private notes by active users with public profiles are listed.
    """
    notes = NoteStore(db).shared_notes(item_id, limit)
    return Envelope(data=[
        SharedNote(
            id=note.id,
            item_id=note.item_id,
            content=note.content,
            username=note.user.username,
            display_name=note.user.display_name,
            created_at=note.created_at,
        )
        for note in notes
    ])


@router.get("/{item_id}", response_model=Envelope[List[NoteRead]])
def get_item_notes(
    item_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notes = NoteStore(db).list_notes(user.id, item_id)
    return Envelope(data=[NoteRead.model_validate(n) for n in notes])


@router.put("/{note_id}", response_model=Envelope[NoteRead])
def update_note(
    note_id: int,
    payload: NoteUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Edit a note; 404 when it is not the caller's"""
    note = NoteStore(db).update_note(
        note_id, user.id, content=payload.content, is_private=payload.is_private
    )
    return Envelope(data=NoteRead.model_validate(note))


@router.delete("/{note_id}", response_model=MessageResponse)
def delete_note(
    note_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    NoteStore(db).delete_note(note_id, user.id)
    return MessageResponse(message="Note deleted successfully")
