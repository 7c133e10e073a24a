"""Schedule service - confirming voted dates as meetings, editing and cancelling them."""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from bookclub.db.enums import BookStatus, Role, ScheduleStatus
from bookclub.db.models import (
    Attendance,
    BookCandidate,
    BookVote,
    DateVote,
    MeetingComment,
    MeetingSubmission,
    Schedule,
    SubmissionComment,
)
from bookclub.db.transaction import run_in_transaction
from bookclub.schemas.book import BookSummary
from bookclub.schemas.member import MemberSummary
from bookclub.schemas.schedule import (
    MonthCalendar,
    ScheduleConfirm,
    ScheduleDetailsUpdate,
    ScheduleRead,
)
from bookclub.services import book_service, date_vote_service, member_service

logger = logging.getLogger(__name__)


class ScheduleServiceError(Exception):
    """Base exception for scheduling workflow errors."""

    pass


class DateAlreadyConfirmedError(ScheduleServiceError):
    """A meeting is already confirmed on that date."""

    pass


class PresenterNotEligibleError(ScheduleServiceError):
    """Presenter does not exist or has not been approved."""

    pass


class BookNotFoundError(ScheduleServiceError):
    """Referenced book does not exist."""

    pass


class CandidateExistsError(ScheduleServiceError):
    """Book is already a candidate for the schedule."""

    pass


class NotACandidateError(ScheduleServiceError):
    """Book is not a candidate for the schedule."""

    pass


class SelectionLockedError(ScheduleServiceError):
    """The schedule's book has already been selected."""

    pass


class SubmissionsLockedError(ScheduleServiceError):
    """Submissions cannot change after reveal."""

    pass


class RevealNotAllowedYetError(ScheduleServiceError):
    """Reveal attempted before the meeting day."""

    pass


class MeetingNotRevealedError(ScheduleServiceError):
    """Comments are only accepted after reveal."""

    pass


def default_title(meeting_date: date) -> str:
    """Title used when an admin confirms a date without naming the meeting."""
    return f"{meeting_date.month}/{meeting_date.day} Meeting"


def to_schedule_read(schedule: Schedule) -> ScheduleRead:
    """Convert Schedule model to read schema."""
    book = schedule.selected_book
    return ScheduleRead(
        id=schedule.id,
        title=schedule.title,
        description=schedule.description,
        meeting_date=schedule.meeting_date,
        meeting_time=schedule.meeting_time,
        location=schedule.location,
        status=schedule.status,
        is_revealed=schedule.is_revealed,
        presenter_id=schedule.presenter_id,
        presenter_name=schedule.presenter.name if schedule.presenter else None,
        selected_book_id=schedule.selected_book_id,
        selected_book=BookSummary.model_validate(book) if book else None,
        created_at=schedule.created_at,
    )


def get_schedule(db: Session, schedule_id: UUID) -> Schedule | None:
    """Get a schedule with its presenter and selected book."""
    return (
        db.query(Schedule)
        .options(joinedload(Schedule.presenter), joinedload(Schedule.selected_book))
        .filter(Schedule.id == schedule_id)
        .first()
    )


def get_schedule_on(db: Session, meeting_date: date) -> Schedule | None:
    return db.query(Schedule).filter(Schedule.meeting_date == meeting_date).first()


def list_schedules_between(db: Session, start: date, end: date) -> list[Schedule]:
    """Schedules with start <= meeting_date <= end, ascending."""
    return (
        db.query(Schedule)
        .options(joinedload(Schedule.presenter), joinedload(Schedule.selected_book))
        .filter(Schedule.meeting_date >= start, Schedule.meeting_date <= end)
        .order_by(Schedule.meeting_date.asc())
        .all()
    )


# =============================================================================
# Confirmation
# =============================================================================

def confirm_schedule(db: Session, user_id: UUID, data: ScheduleConfirm) -> Schedule:
    """
    Promote a voted-on date into a confirmed meeting.

    Creates the schedule and clears that date's availability votes in one
    transaction. An optional book is nominated and selected in the same
    transaction, so it moves to 'selected' like any finalized candidate.

    Raises:
        DateAlreadyConfirmedError: A schedule exists on that date
        PresenterNotEligibleError: Presenter missing or still pending
        BookNotFoundError: Optional book does not exist
    """
    if get_schedule_on(db, data.date):
        raise DateAlreadyConfirmedError("A meeting is already confirmed on this date")

    presenter = member_service.get_member(db, data.presenter_id)
    if not presenter or presenter.role == Role.PENDING.value:
        raise PresenterNotEligibleError("Presenter must be an approved member")

    book = None
    if data.book_id:
        book = book_service.get_book(db, data.book_id)
        if not book:
            raise BookNotFoundError("Book not found")

    title = (data.title or "").strip() or default_title(data.date)

    def work() -> Schedule:
        schedule = Schedule(
            title=title,
            meeting_date=data.date,
            presenter_id=presenter.id,
            selected_book_id=book.id if book else None,
            created_by=user_id,
            status=ScheduleStatus.CONFIRMED.value,
            is_revealed=False,
        )
        db.add(schedule)
        db.query(DateVote).filter(DateVote.vote_date == data.date).delete(
            synchronize_session=False
        )
        db.flush()
        if book:
            # A book chosen up front is both the only candidate and the selection
            db.add(BookCandidate(schedule_id=schedule.id, book_id=book.id))
            book.status = BookStatus.SELECTED.value
        return schedule

    schedule = run_in_transaction(db, work)
    db.refresh(schedule)
    logger.info(
        "Confirmed schedule %s on %s (presenter %s)",
        schedule.id, schedule.meeting_date, schedule.presenter_id,
    )
    return schedule


def update_details(
    db: Session,
    schedule: Schedule,
    data: ScheduleDetailsUpdate,
) -> Schedule:
    """Set meeting time and location. Missing or empty values clear the field."""
    schedule.meeting_time = data.meeting_time
    location = (data.location or "").strip()
    schedule.location = location or None
    db.commit()
    db.refresh(schedule)
    return schedule


def cancel_schedule(db: Session, schedule: Schedule) -> None:
    """
    Delete a schedule and everything that hangs off it, in one transaction.

    Removes book votes, candidates, attendances, submissions with their
    comments, and meeting comments before the schedule itself.
    """
    schedule_id = schedule.id

    def work() -> None:
        submission_ids = [
            row.id
            for row in db.query(MeetingSubmission.id).filter(
                MeetingSubmission.schedule_id == schedule_id
            )
        ]
        if submission_ids:
            db.query(SubmissionComment).filter(
                SubmissionComment.submission_id.in_(submission_ids)
            ).delete(synchronize_session=False)
        for model in (MeetingSubmission, MeetingComment, Attendance, BookVote, BookCandidate):
            db.query(model).filter(model.schedule_id == schedule_id).delete(
                synchronize_session=False
            )
        db.query(Schedule).filter(Schedule.id == schedule_id).delete(
            synchronize_session=False
        )

    run_in_transaction(db, work)
    db.expire_all()
    logger.info("Cancelled schedule %s", schedule_id)


# =============================================================================
# Calendar
# =============================================================================

def get_month(db: Session, day: date, current_user_id: UUID) -> MonthCalendar:
    """Everything the scheduling calendar shows for the month containing ``day``."""
    start, end = date_vote_service.month_window(day)
    votes = date_vote_service.list_votes_in_month(db, day)
    schedules = list_schedules_between(db, start, end)
    members = member_service.list_club_members(db)
    books = book_service.list_available_for_nomination(db)

    return MonthCalendar(
        month_start=start,
        month_end=end,
        votes=votes,
        tallies=date_vote_service.tally(votes, current_user_id),
        schedules=[to_schedule_read(s) for s in schedules],
        members=[MemberSummary.model_validate(m) for m in members],
        available_books=[book_service.to_book_read(b) for b in books],
        current_user_id=current_user_id,
    )
