"""
Pydantic schemas for item notes
"""
from pydantic import Field
from typing import Optional
from datetime import datetime

from roadmap_tracker.config import settings
from roadmap_tracker.schemas.common import CamelModel


class NoteCreate(CamelModel):
    """Body of POST /api/notes"""
    item_id: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=settings.NOTES_MAX_LENGTH)
    is_private: bool = True


class NoteUpdate(CamelModel):
    content: Optional[str] = Field(None, min_length=1, max_length=settings.NOTES_MAX_LENGTH)
    is_private: Optional[bool] = None


class NoteRead(CamelModel):
    id: int
    item_id: str
    content: str
    is_private: bool
    created_at: datetime
    updated_at: datetime


class SharedNote(CamelModel):
    """A public note with its author's public identity"""
    id: int
    item_id: str
    content: str
    username: str
    display_name: Optional[str] = None
    created_at: datetime
