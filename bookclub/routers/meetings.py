"""Meetings router - submissions, reveal and post-reveal threads."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bookclub.core.deps import (
    ensure_allowed,
    get_current_session,
    get_db,
    require_action,
    require_csrf_header,
)
from bookclub.core.policies import Action
from bookclub.routers.schedules import get_schedule_or_404, raise_for_service_error
from bookclub.schemas.auth import UserSession
from bookclub.schemas.meeting import (
    CommentCreate,
    MeetingCommentRead,
    MeetingDetail,
    MeetingList,
    StarClick,
    SubmissionCommentRead,
    SubmissionRead,
    SubmissionUpsert,
)
from bookclub.schemas.schedule import ScheduleRead
from bookclub.services import meeting_service, schedule_service

router = APIRouter(prefix="/meetings", tags=["Meetings"])


@router.get("", response_model=MeetingList)
def list_meetings(
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    """Upcoming meetings and the most recent past ones."""
    return meeting_service.list_meetings(db)


@router.get("/{schedule_id}", response_model=MeetingDetail)
def get_meeting(
    schedule_id: UUID,
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    """
    Meeting page.

    Other members' submissions are only included after reveal.
    """
    schedule = get_schedule_or_404(db, schedule_id)
    return meeting_service.get_meeting_detail(db, schedule, session)


@router.put(
    "/{schedule_id}/submission",
    response_model=SubmissionRead,
    dependencies=[Depends(require_csrf_header)],
)
def upsert_submission(
    schedule_id: UUID,
    data: SubmissionUpsert,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    """Create or replace the caller's submission while the meeting is collecting."""
    schedule = get_schedule_or_404(db, schedule_id)
    try:
        submission = meeting_service.upsert_submission(db, schedule, session.user_id, data)
    except schedule_service.ScheduleServiceError as e:
        raise_for_service_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return meeting_service.to_submission_read(submission)


@router.post(
    "/{schedule_id}/submission/rating",
    response_model=SubmissionRead,
    dependencies=[Depends(require_csrf_header)],
)
def click_star(
    schedule_id: UUID,
    data: StarClick,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    """Apply a click on the rating control to the caller's stored rating."""
    schedule = get_schedule_or_404(db, schedule_id)
    try:
        submission = meeting_service.rate_submission(db, schedule, session.user_id, data.star)
    except schedule_service.ScheduleServiceError as e:
        raise_for_service_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return meeting_service.to_submission_read(submission)


@router.post(
    "/{schedule_id}/reveal",
    response_model=ScheduleRead,
    dependencies=[Depends(require_csrf_header)],
)
def reveal_meeting(
    schedule_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Reveal every submission (admin or presenter, from the meeting day).

    Marks the meeting's book completed. Revealing again is harmless.
    """
    schedule = get_schedule_or_404(db, schedule_id)
    ensure_allowed(session, Action.REVEAL_MEETING, schedule)
    try:
        schedule = meeting_service.reveal(db, schedule)
    except schedule_service.ScheduleServiceError as e:
        raise_for_service_error(e)
    return schedule_service.to_schedule_read(schedule)


@router.post(
    "/{schedule_id}/submissions/{submission_id}/comments",
    response_model=SubmissionCommentRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def comment_on_submission(
    schedule_id: UUID,
    submission_id: UUID,
    data: CommentCreate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    schedule = get_schedule_or_404(db, schedule_id)
    try:
        return meeting_service.add_submission_comment(
            db, schedule, submission_id, session.user_id, data.content
        )
    except schedule_service.ScheduleServiceError as e:
        raise_for_service_error(e)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{schedule_id}/comments", response_model=list[MeetingCommentRead])
def list_meeting_comments(
    schedule_id: UUID,
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    """Meeting chat, oldest first (empty until reveal)."""
    schedule = get_schedule_or_404(db, schedule_id)
    return meeting_service.list_meeting_comments(db, schedule)


@router.post(
    "/{schedule_id}/comments",
    response_model=MeetingCommentRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def post_meeting_comment(
    schedule_id: UUID,
    data: CommentCreate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    schedule = get_schedule_or_404(db, schedule_id)
    try:
        return meeting_service.add_meeting_comment(db, schedule, session.user_id, data.content)
    except schedule_service.ScheduleServiceError as e:
        raise_for_service_error(e)
