"""Schedules router - date voting, confirmation, edits and cancellation."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from bookclub.core.deps import (
    ensure_allowed,
    get_current_session,
    get_db,
    require_action,
    require_csrf_header,
)
from bookclub.core.policies import Action
from bookclub.db.models import Schedule
from bookclub.schemas.auth import UserSession
from bookclub.schemas.schedule import (
    DateVoteCreate,
    DateVoteResult,
    MonthCalendar,
    ScheduleConfirm,
    ScheduleDetailsUpdate,
    ScheduleRead,
)
from bookclub.services import date_vote_service, schedule_service
from bookclub.services.meeting_service import club_today

router = APIRouter(tags=["Schedules"])

# Service errors that mean "the request collides with existing state"
CONFLICT_ERRORS = (
    schedule_service.DateAlreadyConfirmedError,
    schedule_service.CandidateExistsError,
    schedule_service.SelectionLockedError,
    schedule_service.SubmissionsLockedError,
)


def raise_for_service_error(e: schedule_service.ScheduleServiceError):
    """Translate a scheduling workflow error into an HTTP error."""
    if isinstance(e, CONFLICT_ERRORS):
        raise HTTPException(status_code=409, detail=str(e))
    if isinstance(e, schedule_service.BookNotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    raise HTTPException(status_code=400, detail=str(e))


def get_schedule_or_404(db: Session, schedule_id: UUID) -> Schedule:
    schedule = schedule_service.get_schedule(db, schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return schedule


# =============================================================================
# Calendar + date votes
# =============================================================================

@router.get("/schedule", response_model=MonthCalendar)
def get_month(
    date: date | None = Query(default=None, description="Any day in the month (YYYY-MM-DD)"),
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    """Votes, tallies, schedules, members and nominatable books for one month."""
    return schedule_service.get_month(db, date or club_today(), session.user_id)


@router.post(
    "/schedule/votes",
    response_model=DateVoteResult,
    dependencies=[Depends(require_csrf_header)],
)
def cast_date_vote(
    data: DateVoteCreate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    """Vote for a date. Voting again for the same date changes nothing."""
    try:
        changed = date_vote_service.cast_vote(db, session.user_id, data.date)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return DateVoteResult(date=data.date, voted=True, changed=changed)


@router.delete(
    "/schedule/votes/{vote_date}",
    response_model=DateVoteResult,
    dependencies=[Depends(require_csrf_header)],
)
def retract_date_vote(
    vote_date: date,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    """Withdraw the caller's vote for a date."""
    changed = date_vote_service.retract_vote(db, session.user_id, vote_date)
    return DateVoteResult(date=vote_date, voted=False, changed=changed)


# =============================================================================
# Confirmed schedules
# =============================================================================

@router.post(
    "/schedules",
    response_model=ScheduleRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def confirm_schedule(
    data: ScheduleConfirm,
    session: UserSession = Depends(require_action(Action.CONFIRM_SCHEDULE)),
    db: Session = Depends(get_db),
):
    """
    Confirm a date as a meeting (admin only).

    Clears that date's availability votes.
    """
    try:
        schedule = schedule_service.confirm_schedule(db, session.user_id, data)
    except schedule_service.ScheduleServiceError as e:
        raise_for_service_error(e)
    return schedule_service.to_schedule_read(schedule)


@router.get("/schedules/{schedule_id}", response_model=ScheduleRead)
def get_schedule(
    schedule_id: UUID,
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    return schedule_service.to_schedule_read(get_schedule_or_404(db, schedule_id))


@router.patch(
    "/schedules/{schedule_id}",
    response_model=ScheduleRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_schedule(
    schedule_id: UUID,
    data: ScheduleDetailsUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Set meeting time and location (admin or presenter)."""
    schedule = get_schedule_or_404(db, schedule_id)
    ensure_allowed(session, Action.UPDATE_SCHEDULE_DETAILS, schedule)
    schedule = schedule_service.update_details(db, schedule, data)
    return schedule_service.to_schedule_read(schedule)


@router.delete(
    "/schedules/{schedule_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def cancel_schedule(
    schedule_id: UUID,
    session: UserSession = Depends(require_action(Action.CANCEL_SCHEDULE)),
    db: Session = Depends(get_db),
):
    """Cancel a meeting and remove everything attached to it (admin only)."""
    schedule = get_schedule_or_404(db, schedule_id)
    schedule_service.cancel_schedule(db, schedule)
