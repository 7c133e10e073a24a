"""Attendance router - RSVPs."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookclub.core.deps import get_db, require_action, require_csrf_header
from bookclub.core.policies import Action
from bookclub.routers.schedules import get_schedule_or_404
from bookclub.schemas.attendance import AttendanceRead, AttendanceUpdate
from bookclub.schemas.auth import UserSession
from bookclub.services import attendance_service

router = APIRouter(prefix="/schedules/{schedule_id}/attendance", tags=["Attendance"])


@router.get("", response_model=list[AttendanceRead])
def list_attendance(
    schedule_id: UUID,
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    schedule = get_schedule_or_404(db, schedule_id)
    rows = attendance_service.list_attendance(db, schedule.id)
    return [attendance_service.to_attendance_read(a) for a in rows]


@router.post(
    "",
    response_model=list[AttendanceRead],
    dependencies=[Depends(require_csrf_header)],
)
def set_attendance(
    schedule_id: UUID,
    data: AttendanceUpdate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    """Set the caller's RSVP and return everyone's."""
    schedule = get_schedule_or_404(db, schedule_id)
    rows = attendance_service.set_status(db, schedule.id, session.user_id, data.status)
    return [attendance_service.to_attendance_read(a) for a in rows]
