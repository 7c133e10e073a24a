"""Pydantic schemas for book candidates, book votes and final selection."""

from uuid import UUID

from pydantic import BaseModel

from bookclub.schemas.book import BookSummary


class CandidateCreate(BaseModel):
    """Request to nominate a book for a schedule."""
    book_id: UUID


class CandidateRead(BaseModel):
    """Nominated book with its tally."""
    id: UUID
    schedule_id: UUID
    book: BookSummary
    vote_count: int
    voters: list[str]
    voted_by_me: bool
    is_selected: bool


class CandidateList(BaseModel):
    """Candidates for one schedule, most votes first."""
    schedule_id: UUID
    selected_book_id: UUID | None
    candidates: list[CandidateRead]


class BookVoteResult(BaseModel):
    """Outcome of a vote or unvote."""
    book_id: UUID
    voted: bool
    changed: bool


class BookSelection(BaseModel):
    """Request to finalize the meeting's book."""
    book_id: UUID
