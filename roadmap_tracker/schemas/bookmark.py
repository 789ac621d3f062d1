"""
Pydantic schemas for bookmarks and bookmark collections
"""
from pydantic import Field
from typing import Optional
from datetime import datetime

from roadmap_tracker.schemas.common import CamelModel


class BookmarkCreate(CamelModel):
    """Body of POST /api/bookmarks"""
    item_id: str = Field(..., min_length=1, max_length=100)
    collection_id: Optional[int] = None


class BookmarkRead(CamelModel):
    id: int
    item_id: str
    collection_id: Optional[int] = None
    created_at: datetime


class CollectionCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_public: bool = False


class CollectionRead(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    is_public: bool
    created_at: datetime
