"""Pydantic schemas for RSVPs."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from bookclub.db.enums import AttendanceStatus


class AttendanceUpdate(BaseModel):
    """Set the caller's RSVP."""
    status: AttendanceStatus


class AttendanceRead(BaseModel):
    """RSVP with the member's name."""
    id: UUID
    schedule_id: UUID
    user_id: UUID
    member_name: str
    status: AttendanceStatus
    updated_at: datetime
