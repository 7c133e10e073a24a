"""Candidates router - nominations, book votes and final selection."""

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
from bookclub.schemas.candidate import (
    BookSelection,
    BookVoteResult,
    CandidateCreate,
    CandidateList,
)
from bookclub.schemas.schedule import ScheduleRead
from bookclub.services import candidate_service, schedule_service

router = APIRouter(prefix="/schedules/{schedule_id}", tags=["Candidates"])


@router.get("/candidates", response_model=CandidateList)
def list_candidates(
    schedule_id: UUID,
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    """Candidates with tallies, most votes first."""
    schedule = get_schedule_or_404(db, schedule_id)
    return candidate_service.list_candidates(db, schedule, session.user_id)


@router.post(
    "/candidates",
    response_model=CandidateList,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def add_candidate(
    schedule_id: UUID,
    data: CandidateCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Nominate a book (admin or presenter)."""
    schedule = get_schedule_or_404(db, schedule_id)
    ensure_allowed(session, Action.MANAGE_CANDIDATES, schedule)
    try:
        candidate_service.add_candidate(db, schedule, data.book_id)
    except schedule_service.ScheduleServiceError as e:
        raise_for_service_error(e)
    return candidate_service.list_candidates(db, schedule, session.user_id)


@router.delete(
    "/candidates/{candidate_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def remove_candidate(
    schedule_id: UUID,
    candidate_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Withdraw a nomination and its votes (admin or presenter)."""
    schedule = get_schedule_or_404(db, schedule_id)
    ensure_allowed(session, Action.MANAGE_CANDIDATES, schedule)
    candidate = candidate_service.get_candidate(db, schedule.id, candidate_id)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate not found")
    try:
        candidate_service.remove_candidate(db, schedule, candidate)
    except schedule_service.ScheduleServiceError as e:
        raise_for_service_error(e)


@router.post(
    "/candidates/{book_id}/vote",
    response_model=BookVoteResult,
    dependencies=[Depends(require_csrf_header)],
)
def vote_for_book(
    schedule_id: UUID,
    book_id: UUID,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    """Vote for a candidate book. Voting twice changes nothing."""
    schedule = get_schedule_or_404(db, schedule_id)
    try:
        changed = candidate_service.vote(db, schedule.id, book_id, session.user_id)
    except schedule_service.ScheduleServiceError as e:
        raise_for_service_error(e)
    return BookVoteResult(book_id=book_id, voted=True, changed=changed)


@router.delete(
    "/candidates/{book_id}/vote",
    response_model=BookVoteResult,
    dependencies=[Depends(require_csrf_header)],
)
def unvote_book(
    schedule_id: UUID,
    book_id: UUID,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    """Withdraw the caller's vote for a book."""
    schedule = get_schedule_or_404(db, schedule_id)
    changed = candidate_service.unvote(db, schedule.id, book_id, session.user_id)
    return BookVoteResult(book_id=book_id, voted=False, changed=changed)


@router.post(
    "/selection",
    response_model=ScheduleRead,
    dependencies=[Depends(require_csrf_header)],
)
def select_book(
    schedule_id: UUID,
    data: BookSelection,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Finalize the meeting's book from the candidates (admin or presenter)."""
    schedule = get_schedule_or_404(db, schedule_id)
    ensure_allowed(session, Action.SELECT_BOOK, schedule)
    try:
        schedule = candidate_service.select_final_book(db, schedule, data.book_id)
    except schedule_service.ScheduleServiceError as e:
        raise_for_service_error(e)
    return schedule_service.to_schedule_read(schedule)
