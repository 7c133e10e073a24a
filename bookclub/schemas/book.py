"""Pydantic schemas for the book catalog."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from bookclub.db.enums import BookStatus


class BookCreate(BaseModel):
    """Request to add a book to the catalog."""
    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field(..., min_length=1, max_length=255)
    cover_url: str | None = Field(default=None, max_length=500)
    description: str | None = None
    isbn: str | None = Field(default=None, max_length=20)
    category: str | None = Field(default=None, max_length=100)
    selection_reason: str | None = None


class BookSummary(BaseModel):
    """Book reference embedded in other payloads."""
    id: UUID
    title: str
    author: str
    cover_url: str | None = None

    model_config = {"from_attributes": True}


class BookRead(BaseModel):
    """Book response."""
    id: UUID
    title: str
    author: str
    cover_url: str | None = None
    description: str | None = None
    isbn: str | None = None
    category: str | None = None
    selection_reason: str | None = None
    status: BookStatus
    created_by: UUID | None = None
    creator_name: str | None = None
    created_at: datetime


class BookScheduleItem(BaseModel):
    """Meeting that picked this book."""
    id: UUID
    title: str
    meeting_date: date
    is_revealed: bool


class BookPostItem(BaseModel):
    """Discussion or review about this book."""
    id: UUID
    title: str
    author_name: str
    created_at: datetime
    rating: int | None = None


class BookDetail(BaseModel):
    """Book with the meetings, discussions and reviews that reference it."""
    book: BookRead
    schedules: list[BookScheduleItem]
    discussions: list[BookPostItem]
    reviews: list[BookPostItem]


class BookSearchResult(BaseModel):
    """Catalog prefill from the external book lookup; not stored."""
    title: str
    author: str
    description: str | None = None
    cover_url: str | None = None
    isbn: str | None = None
    category: str | None = None
