"""Pydantic schemas for discussions, reviews, recaps and generic comments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from bookclub.db.enums import CommentableType
from bookclub.schemas.book import BookSummary


class DiscussionCreate(BaseModel):
    """Request to post a discussion."""
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=50000)
    book_id: UUID | None = None
    schedule_id: UUID | None = None


class DiscussionRead(BaseModel):
    """Discussion response."""
    id: UUID
    user_id: UUID
    author_name: str
    title: str
    content: str
    book: BookSummary | None = None
    schedule_id: UUID | None = None
    created_at: datetime


class ReviewCreate(BaseModel):
    """Request to post a review."""
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=50000)
    book_id: UUID
    rating: int = Field(..., ge=1, le=5)


class ReviewRead(BaseModel):
    """Review response."""
    id: UUID
    user_id: UUID
    author_name: str
    title: str
    content: str
    rating: int
    book: BookSummary
    created_at: datetime


class RecapCreate(BaseModel):
    """Request to post a photo recap."""
    title: str = Field(..., min_length=1, max_length=255)
    content: str | None = Field(default=None, max_length=20000)
    photos: list[str] = Field(..., min_length=1, max_length=30)
    schedule_id: UUID | None = None


class RecapRead(BaseModel):
    """Recap response."""
    id: UUID
    user_id: UUID
    author_name: str
    title: str
    content: str | None = None
    photos: list[str]
    schedule_id: UUID | None = None
    created_at: datetime


class GalleryPhoto(BaseModel):
    """One photo in the flattened gallery."""
    url: str
    title: str
    author: str


class Gallery(BaseModel):
    """All recap photos plus the recaps they came from."""
    photos: list[GalleryPhoto]
    recaps: list[RecapRead]


class CommentCreate(BaseModel):
    """Request to comment on a discussion, review or recap."""
    commentable_type: CommentableType
    commentable_id: UUID
    content: str = Field(..., min_length=1, max_length=4000)


class CommentRead(BaseModel):
    """Generic comment response."""
    id: UUID
    commentable_type: CommentableType
    commentable_id: UUID
    user_id: UUID
    author_name: str
    content: str
    created_at: datetime
