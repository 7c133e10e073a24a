"""Attendance service - RSVPs for confirmed meetings."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from bookclub.db.enums import AttendanceStatus
from bookclub.db.models import Attendance
from bookclub.schemas.attendance import AttendanceRead
from bookclub.services.member_service import UNKNOWN_NAME


def to_attendance_read(attendance: Attendance) -> AttendanceRead:
    """Convert Attendance model to read schema."""
    return AttendanceRead(
        id=attendance.id,
        schedule_id=attendance.schedule_id,
        user_id=attendance.user_id,
        member_name=attendance.member.name if attendance.member else UNKNOWN_NAME,
        status=AttendanceStatus(attendance.status),
        updated_at=attendance.updated_at,
    )


def list_attendance(db: Session, schedule_id: UUID) -> list[Attendance]:
    """RSVPs for a schedule, earliest first."""
    return (
        db.query(Attendance)
        .options(joinedload(Attendance.member))
        .filter(Attendance.schedule_id == schedule_id)
        .order_by(Attendance.created_at.asc())
        .all()
    )


def set_status(
    db: Session,
    schedule_id: UUID,
    user_id: UUID,
    status: AttendanceStatus,
) -> list[Attendance]:
    """
    Upsert the member's RSVP (last write wins).

    Returns the schedule's full attendance list.
    """
    for _ in range(2):
        attendance = (
            db.query(Attendance)
            .filter(Attendance.schedule_id == schedule_id, Attendance.user_id == user_id)
            .first()
        )
        if attendance:
            attendance.status = status.value
        else:
            db.add(Attendance(schedule_id=schedule_id, user_id=user_id, status=status.value))
        try:
            db.commit()
            break
        except IntegrityError:
            # Another request inserted the row first; update it instead
            db.rollback()
    else:
        raise ValueError("Could not save attendance, please retry")

    return list_attendance(db, schedule_id)
