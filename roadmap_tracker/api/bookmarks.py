"""
Bookmarks API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from roadmap_tracker.api.deps import get_current_user
from roadmap_tracker.database import get_db
from roadmap_tracker.models import User
from roadmap_tracker.schemas.bookmark import (
    BookmarkCreate, BookmarkRead, CollectionCreate, CollectionRead
)
from roadmap_tracker.schemas.common import Envelope, MessageResponse
from roadmap_tracker.services.bookmark_store import BookmarkStore

router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])
logger = logging.getLogger(__name__)


@router.get("/collections", response_model=Envelope[List[CollectionRead]])
def list_collections(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    collections = BookmarkStore(db).list_collections(user.id)
    return Envelope(data=[CollectionRead.model_validate(c) for c in collections])


@router.post("/collections", response_model=Envelope[CollectionRead], status_code=201)
def create_collection(
    payload: CollectionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a named collection; names are unique per user"""
    collection = BookmarkStore(db).create_collection(
        user.id, payload.name, payload.description, payload.is_public
    )
    return Envelope(data=CollectionRead.model_validate(collection))


@router.delete("/collections/{collection_id}", response_model=MessageResponse)
def delete_collection(
    collection_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a collection; its bookmarks are kept without a collection"""
    BookmarkStore(db).delete_collection(collection_id, user.id)
    return MessageResponse(message="Collection deleted successfully")


@router.get("", response_model=Envelope[List[BookmarkRead]])
def list_bookmarks(
    collection_id: Optional[int] = Query(None, alias="collectionId"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    bookmarks = BookmarkStore(db).list_bookmarks(user.id, collection_id)
    return Envelope(data=[BookmarkRead.model_validate(b) for b in bookmarks])


@router.post("", response_model=Envelope[BookmarkRead], status_code=201)
def add_bookmark(
    payload: BookmarkCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Bookmark an item

    - Bookmarking an already bookmarked item returns the existing bookmark
    - With collectionId the bookmark is (re)filed in that collection
    """
    bookmark = BookmarkStore(db).add(user.id, payload.item_id, payload.collection_id)
    return Envelope(data=BookmarkRead.model_validate(bookmark))


@router.delete("/{item_id}", response_model=MessageResponse)
def remove_bookmark(
    item_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    BookmarkStore(db).remove(user.id, item_id)
    return MessageResponse(message="Bookmark removed successfully")
