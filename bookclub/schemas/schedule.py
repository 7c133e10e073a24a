"""Pydantic schemas for date voting and schedule confirmation."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field

from bookclub.schemas.book import BookRead, BookSummary
from bookclub.schemas.member import MemberSummary


class DateVoteCreate(BaseModel):
    """Request to vote for a calendar date."""
    date: date


class DateVoteResult(BaseModel):
    """Outcome of a cast or retract."""
    date: date
    voted: bool
    changed: bool


class DateVoteRead(BaseModel):
    """One member's vote for one date."""
    user_id: UUID
    vote_date: date
    voter_name: str


class DateTally(BaseModel):
    """Votes for one date in the month window."""
    date: date
    count: int
    voters: list[str]
    voted_by_me: bool


class ScheduleConfirm(BaseModel):
    """Request to confirm a voted date as a meeting."""
    date: date
    presenter_id: UUID
    book_id: UUID | None = None
    title: str | None = Field(default=None, max_length=255)


class ScheduleDetailsUpdate(BaseModel):
    """Time/location edit; empty values clear the field."""
    meeting_time: time | None = None
    location: str | None = Field(default=None, max_length=255)


class ScheduleRead(BaseModel):
    """Confirmed meeting with resolved references."""
    id: UUID
    title: str
    description: str | None = None
    meeting_date: date
    meeting_time: time | None = None
    location: str | None = None
    status: str
    is_revealed: bool
    presenter_id: UUID | None = None
    presenter_name: str | None = None
    selected_book_id: UUID | None = None
    selected_book: BookSummary | None = None
    created_at: datetime


class MonthCalendar(BaseModel):
    """Everything the scheduling calendar renders for one month."""
    month_start: date
    month_end: date
    votes: list[DateVoteRead]
    tallies: list[DateTally]
    schedules: list[ScheduleRead]
    members: list[MemberSummary]
    available_books: list[BookRead]
    current_user_id: UUID
