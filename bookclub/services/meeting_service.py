"""Meeting service - private submissions, reveal and post-reveal threads.

A schedule is 'collecting' until it is revealed. While collecting, each
member sees only their own submission plus a content-free roster. Reveal is
one-way; afterwards every submission is readable and the comment threads
open.
"""

import logging
from datetime import date, datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from bookclub.core.config import settings
from bookclub.core.policies import Action, can
from bookclub.db.enums import BookStatus
from bookclub.db.models import (
    Book,
    MeetingComment,
    MeetingSubmission,
    Schedule,
    SubmissionComment,
)
from bookclub.db.transaction import run_in_transaction
from bookclub.schemas.auth import UserSession
from bookclub.schemas.book import BookSummary
from bookclub.schemas.meeting import (
    Dashboard,
    MeetingCommentRead,
    MeetingDetail,
    MeetingInfo,
    MeetingList,
    MeetingListItem,
    RatingEntry,
    SubmissionCommentRead,
    SubmissionRead,
    SubmissionStatus,
    SubmissionUpsert,
)
from bookclub.services import book_service, member_service
from bookclub.services.schedule_service import (
    MeetingNotRevealedError,
    RevealNotAllowedYetError,
    SubmissionsLockedError,
)

logger = logging.getLogger(__name__)

PAST_MEETINGS_LIMIT = 20


def club_today() -> date:
    """Today's date on the club's calendar."""
    return datetime.now(ZoneInfo(settings.CLUB_TIMEZONE)).date()


def apply_star_click(current: float | None, star: int) -> float:
    """
    Rating after clicking star ``star`` of the 5-star control.

    Clicking a star sets that rating; clicking it again while already at
    that rating drops half a star; a third click restores the full star.
    """
    if star < 1 or star > 5:
        raise ValueError("Star must be between 1 and 5")
    if current == star:
        return star - 0.5
    return float(star)


def clean_discussion(entries: list[str]) -> list[str]:
    """Drop blank entries, keep the rest in order."""
    return [entry.strip() for entry in entries if entry and entry.strip()]


def _author_name(member) -> str:
    return member.name if member else member_service.UNKNOWN_NAME


def to_submission_read(submission: MeetingSubmission) -> SubmissionRead:
    """Convert MeetingSubmission model to read schema."""
    return SubmissionRead(
        id=submission.id,
        schedule_id=submission.schedule_id,
        user_id=submission.user_id,
        author_name=_author_name(submission.member),
        author_avatar_url=submission.member.avatar_url if submission.member else None,
        discussion=list(submission.discussion or []),
        one_liner=submission.one_liner,
        rating=submission.rating,
        created_at=submission.created_at,
        updated_at=submission.updated_at,
    )


def _to_list_item(schedule: Schedule, ratings: list[RatingEntry] | None = None) -> MeetingListItem:
    book = schedule.selected_book
    return MeetingListItem(
        id=schedule.id,
        title=schedule.title,
        meeting_date=schedule.meeting_date,
        meeting_time=schedule.meeting_time,
        location=schedule.location,
        is_revealed=schedule.is_revealed,
        presenter_name=schedule.presenter.name if schedule.presenter else None,
        selected_book=BookSummary.model_validate(book) if book else None,
        ratings=ratings or [],
    )


# =============================================================================
# Reads
# =============================================================================

def get_submission(db: Session, schedule_id: UUID, user_id: UUID) -> MeetingSubmission | None:
    """The member's submission for a schedule, if any."""
    return (
        db.query(MeetingSubmission)
        .options(joinedload(MeetingSubmission.member))
        .filter(
            MeetingSubmission.schedule_id == schedule_id,
            MeetingSubmission.user_id == user_id,
        )
        .first()
    )


def list_submissions(db: Session, schedule_id: UUID) -> list[MeetingSubmission]:
    return (
        db.query(MeetingSubmission)
        .options(joinedload(MeetingSubmission.member))
        .filter(MeetingSubmission.schedule_id == schedule_id)
        .order_by(MeetingSubmission.created_at.asc())
        .all()
    )


def list_meetings(db: Session, today: date | None = None) -> MeetingList:
    """
    Upcoming meetings soonest first, and the latest past meetings.

    Past meetings carry each participant's rating once revealed.
    """
    today = today or club_today()
    base = db.query(Schedule).options(
        joinedload(Schedule.presenter), joinedload(Schedule.selected_book)
    )
    upcoming = (
        base.filter(Schedule.meeting_date >= today)
        .order_by(Schedule.meeting_date.asc())
        .all()
    )
    past = (
        base.filter(Schedule.meeting_date < today)
        .order_by(Schedule.meeting_date.desc())
        .limit(PAST_MEETINGS_LIMIT)
        .all()
    )

    revealed_ids = [s.id for s in past if s.is_revealed]
    ratings: dict[UUID, list[RatingEntry]] = {}
    if revealed_ids:
        rated = (
            db.query(MeetingSubmission)
            .options(joinedload(MeetingSubmission.member))
            .filter(
                MeetingSubmission.schedule_id.in_(revealed_ids),
                MeetingSubmission.rating.isnot(None),
            )
            .order_by(MeetingSubmission.created_at.asc())
            .all()
        )
        for submission in rated:
            ratings.setdefault(submission.schedule_id, []).append(
                RatingEntry(name=_author_name(submission.member), rating=submission.rating)
            )

    return MeetingList(
        upcoming=[_to_list_item(s) for s in upcoming],
        past=[_to_list_item(s, ratings.get(s.id)) for s in past],
    )


def get_dashboard(db: Session, today: date | None = None) -> Dashboard:
    """Next meeting (today or later) and the featured book."""
    today = today or club_today()
    upcoming = (
        db.query(Schedule)
        .options(joinedload(Schedule.presenter), joinedload(Schedule.selected_book))
        .filter(Schedule.meeting_date >= today)
        .order_by(Schedule.meeting_date.asc())
        .first()
    )

    if upcoming and upcoming.selected_book:
        presenter = upcoming.presenter.name if upcoming.presenter else None
        return Dashboard(
            next_meeting=_to_list_item(upcoming),
            featured_book=book_service.to_book_read(upcoming.selected_book),
            featured_presenter=presenter,
        )

    latest_selected = (
        db.query(Book)
        .filter(Book.status == BookStatus.SELECTED.value)
        .order_by(Book.created_at.desc())
        .first()
    )
    return Dashboard(
        next_meeting=_to_list_item(upcoming) if upcoming else None,
        featured_book=book_service.to_book_read(latest_selected) if latest_selected else None,
    )


def build_roster(db: Session, schedule_id: UUID) -> list[SubmissionStatus]:
    """Submission progress for every club member, never the content itself."""
    members = member_service.list_club_members(db)
    submissions = {
        s.user_id: s
        for s in db.query(MeetingSubmission).filter(
            MeetingSubmission.schedule_id == schedule_id
        )
    }

    roster = []
    for member in members:
        submission = submissions.get(member.id)
        discussion = (submission.discussion or []) if submission else []
        roster.append(
            SubmissionStatus(
                user_id=member.id,
                user_name=member.name,
                has_submitted=submission is not None,
                char_count=sum(len(entry) for entry in discussion),
                has_rating=bool(submission and submission.rating is not None),
                has_one_liner=bool(submission and submission.one_liner),
            )
        )
    return roster


def list_submission_comments(db: Session, schedule_id: UUID) -> list[SubmissionCommentRead]:
    comments = (
        db.query(SubmissionComment)
        .options(joinedload(SubmissionComment.member))
        .join(MeetingSubmission, MeetingSubmission.id == SubmissionComment.submission_id)
        .filter(MeetingSubmission.schedule_id == schedule_id)
        .order_by(SubmissionComment.created_at.asc())
        .all()
    )
    return [
        SubmissionCommentRead(
            id=c.id,
            submission_id=c.submission_id,
            user_id=c.user_id,
            author_name=_author_name(c.member),
            content=c.content,
            created_at=c.created_at,
        )
        for c in comments
    ]


def list_meeting_comments(db: Session, schedule: Schedule) -> list[MeetingCommentRead]:
    """Meeting chat, oldest first. Empty until reveal."""
    if not schedule.is_revealed:
        return []
    comments = (
        db.query(MeetingComment)
        .options(joinedload(MeetingComment.member))
        .filter(MeetingComment.schedule_id == schedule.id)
        .order_by(MeetingComment.created_at.asc())
        .all()
    )
    return [
        MeetingCommentRead(
            id=c.id,
            schedule_id=c.schedule_id,
            user_id=c.user_id,
            author_name=_author_name(c.member),
            content=c.content,
            created_at=c.created_at,
        )
        for c in comments
    ]


def get_meeting_detail(
    db: Session,
    schedule: Schedule,
    session: UserSession,
    today: date | None = None,
) -> MeetingDetail:
    """
    Meeting page for the caller.

    Until reveal, ``submissions`` holds only the caller's own submission and
    both comment threads are empty.
    """
    today = today or club_today()
    mine = get_submission(db, schedule.id, session.user_id)

    if schedule.is_revealed:
        submissions = [to_submission_read(s) for s in list_submissions(db, schedule.id)]
        submission_comments = list_submission_comments(db, schedule.id)
        meeting_comments = list_meeting_comments(db, schedule)
    else:
        submissions = [to_submission_read(mine)] if mine else []
        submission_comments = []
        meeting_comments = []

    book = schedule.selected_book
    info = MeetingInfo(
        id=schedule.id,
        title=schedule.title,
        meeting_date=schedule.meeting_date,
        meeting_time=schedule.meeting_time,
        location=schedule.location,
        is_revealed=schedule.is_revealed,
        presenter_id=schedule.presenter_id,
        presenter_name=schedule.presenter.name if schedule.presenter else None,
        selected_book=BookSummary.model_validate(book) if book else None,
        can_reveal=(
            not schedule.is_revealed
            and today >= schedule.meeting_date
            and can(session, Action.REVEAL_MEETING, schedule)
        ),
        can_edit_submission=(
            not schedule.is_revealed and can(session, Action.PARTICIPATE)
        ),
    )

    return MeetingDetail(
        schedule=info,
        my_submission=to_submission_read(mine) if mine else None,
        submissions=submissions,
        roster=build_roster(db, schedule.id),
        submission_comments=submission_comments,
        meeting_comments=meeting_comments,
        current_user_id=session.user_id,
    )


# =============================================================================
# Writes
# =============================================================================

def _save_submission(
    db: Session,
    schedule_id: UUID,
    user_id: UUID,
    apply,
) -> MeetingSubmission:
    """Create or update the member's submission, retrying once as an update on a race."""
    for _ in range(2):
        submission = get_submission(db, schedule_id, user_id)
        if submission is None:
            submission = MeetingSubmission(
                schedule_id=schedule_id, user_id=user_id, discussion=[]
            )
            db.add(submission)
        apply(submission)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            continue
        db.refresh(submission)
        return submission
    raise ValueError("Could not save submission, please retry")


def upsert_submission(
    db: Session,
    schedule: Schedule,
    user_id: UUID,
    data: SubmissionUpsert,
) -> MeetingSubmission:
    """
    Create or replace the caller's submission.

    Raises:
        SubmissionsLockedError: Meeting already revealed
    """
    if schedule.is_revealed:
        raise SubmissionsLockedError("Submissions are locked after reveal")

    discussion = clean_discussion(data.discussion)
    one_liner = (data.one_liner or "").strip() or None

    def apply(submission: MeetingSubmission) -> None:
        submission.discussion = discussion
        submission.one_liner = one_liner
        submission.rating = data.rating

    return _save_submission(db, schedule.id, user_id, apply)


def rate_submission(
    db: Session,
    schedule: Schedule,
    user_id: UUID,
    star: int,
) -> MeetingSubmission:
    """
    Apply a star click to the caller's stored rating.

    Raises:
        SubmissionsLockedError: Meeting already revealed
    """
    if schedule.is_revealed:
        raise SubmissionsLockedError("Submissions are locked after reveal")

    def apply(submission: MeetingSubmission) -> None:
        submission.rating = apply_star_click(submission.rating, star)

    return _save_submission(db, schedule.id, user_id, apply)


def reveal(db: Session, schedule: Schedule, today: date | None = None) -> Schedule:
    """
    Reveal every submission and complete the meeting's book.

    Both writes happen in one transaction; repeating reveal is a no-op
    beyond re-asserting the same end state.

    Raises:
        RevealNotAllowedYetError: Before the meeting day (club timezone)
    """
    today = today or club_today()
    if today < schedule.meeting_date:
        raise RevealNotAllowedYetError("Submissions can be revealed from the meeting day")

    def work() -> Schedule:
        if schedule.selected_book is not None:
            schedule.selected_book.status = BookStatus.COMPLETED.value
        schedule.is_revealed = True
        return schedule

    already_revealed = schedule.is_revealed
    run_in_transaction(db, work)
    db.refresh(schedule)
    if not already_revealed:
        logger.info("Revealed schedule %s", schedule.id)
    return schedule


def add_submission_comment(
    db: Session,
    schedule: Schedule,
    submission_id: UUID,
    user_id: UUID,
    content: str,
) -> SubmissionCommentRead:
    """
    Comment on a revealed submission.

    Raises:
        MeetingNotRevealedError: Meeting still collecting
        ValueError: Submission does not belong to this meeting
    """
    if not schedule.is_revealed:
        raise MeetingNotRevealedError("Comments open after reveal")

    submission = (
        db.query(MeetingSubmission)
        .filter(
            MeetingSubmission.id == submission_id,
            MeetingSubmission.schedule_id == schedule.id,
        )
        .first()
    )
    if not submission:
        raise ValueError("Submission not found")

    comment = SubmissionComment(
        submission_id=submission.id, user_id=user_id, content=content
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return SubmissionCommentRead(
        id=comment.id,
        submission_id=comment.submission_id,
        user_id=comment.user_id,
        author_name=_author_name(comment.member),
        content=comment.content,
        created_at=comment.created_at,
    )


def add_meeting_comment(
    db: Session,
    schedule: Schedule,
    user_id: UUID,
    content: str,
) -> MeetingCommentRead:
    """
    Post to the meeting chat.

    Raises:
        MeetingNotRevealedError: Meeting still collecting
    """
    if not schedule.is_revealed:
        raise MeetingNotRevealedError("Comments open after reveal")

    comment = MeetingComment(schedule_id=schedule.id, user_id=user_id, content=content)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return MeetingCommentRead(
        id=comment.id,
        schedule_id=comment.schedule_id,
        user_id=comment.user_id,
        author_name=_author_name(comment.member),
        content=comment.content,
        created_at=comment.created_at,
    )
