"""Pydantic schemas for meeting submissions, reveal and comment threads."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from bookclub.schemas.book import BookRead, BookSummary

MAX_DISCUSSION_ENTRIES = 20


def validate_half_point_rating(value: float | None) -> float | None:
    """Ratings are 0.5 steps in [0.5, 5]; 0 or None means no rating."""
    if value is None or value == 0:
        return None
    if value < 0.5 or value > 5:
        raise ValueError("Rating must be between 0.5 and 5")
    if (value * 2) != int(value * 2):
        raise ValueError("Rating must be in 0.5 increments")
    return float(value)


class SubmissionUpsert(BaseModel):
    """Create or replace the caller's submission."""
    discussion: list[str] = Field(default_factory=list, max_length=MAX_DISCUSSION_ENTRIES)
    one_liner: str | None = Field(default=None, max_length=500)
    rating: float | None = None

    @field_validator("rating")
    @classmethod
    def _check_rating(cls, value: float | None) -> float | None:
        return validate_half_point_rating(value)


class StarClick(BaseModel):
    """A click on star ``star`` of the 5-star rating control."""
    star: int = Field(..., ge=1, le=5)


class SubmissionRead(BaseModel):
    """Submission content (own, or anyone's after reveal)."""
    id: UUID
    schedule_id: UUID
    user_id: UUID
    author_name: str
    author_avatar_url: str | None = None
    discussion: list[str]
    one_liner: str | None = None
    rating: float | None = None
    created_at: datetime
    updated_at: datetime


class SubmissionStatus(BaseModel):
    """Roster line: who has submitted, without content."""
    user_id: UUID
    user_name: str
    has_submitted: bool
    char_count: int
    has_rating: bool
    has_one_liner: bool


class CommentCreate(BaseModel):
    """Comment body."""
    content: str = Field(..., min_length=1, max_length=4000)

    @field_validator("content")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Content is required")
        return value


class SubmissionCommentRead(BaseModel):
    """Comment on a submission."""
    id: UUID
    submission_id: UUID
    user_id: UUID
    author_name: str
    content: str
    created_at: datetime


class MeetingCommentRead(BaseModel):
    """Meeting chat message."""
    id: UUID
    schedule_id: UUID
    user_id: UUID
    author_name: str
    content: str
    created_at: datetime


class MeetingInfo(BaseModel):
    """Schedule fields shown on the meeting page."""
    id: UUID
    title: str
    meeting_date: date
    meeting_time: time | None = None
    location: str | None = None
    is_revealed: bool
    presenter_id: UUID | None = None
    presenter_name: str | None = None
    selected_book: BookSummary | None = None
    can_reveal: bool
    can_edit_submission: bool


class MeetingDetail(BaseModel):
    """
    Meeting page payload.

    submissions holds only the caller's own submission until reveal,
    and every submission afterwards. Comments are empty until reveal.
    """
    schedule: MeetingInfo
    my_submission: SubmissionRead | None
    submissions: list[SubmissionRead]
    roster: list[SubmissionStatus]
    submission_comments: list[SubmissionCommentRead]
    meeting_comments: list[MeetingCommentRead]
    current_user_id: UUID


class RatingEntry(BaseModel):
    """One participant's rating of a past meeting's book."""
    name: str
    rating: float


class MeetingListItem(BaseModel):
    """Meeting card for the upcoming/past lists."""
    id: UUID
    title: str
    meeting_date: date
    meeting_time: time | None = None
    location: str | None = None
    is_revealed: bool
    presenter_name: str | None = None
    selected_book: BookSummary | None = None
    ratings: list[RatingEntry] = Field(default_factory=list)


class MeetingList(BaseModel):
    """Upcoming meetings (soonest first) and past meetings (latest first)."""
    upcoming: list[MeetingListItem]
    past: list[MeetingListItem]


class Dashboard(BaseModel):
    """
    Home page: the next meeting and the book the club is reading.

    featured_book is the next meeting's book, else the most recently added
    book in 'selected' status. featured_presenter is only known in the
    first case.
    """
    next_meeting: MeetingListItem | None
    featured_book: BookRead | None
    featured_presenter: str | None = None
