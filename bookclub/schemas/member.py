"""Pydantic schemas for members and the admin console."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from bookclub.db.enums import Role


class MemberSummary(BaseModel):
    """Minimal member reference for pickers and rosters."""
    id: UUID
    name: str

    model_config = {"from_attributes": True}


class MemberRead(BaseModel):
    """Member row as shown in the admin console."""
    id: UUID
    email: str
    name: str
    avatar_url: str | None = None
    role: Role
    created_at: datetime

    model_config = {"from_attributes": True}


class RoleUpdate(BaseModel):
    """Request to change a member's role."""
    role: Role


class SiteStats(BaseModel):
    """Admin dashboard counters."""
    members: int
    books: int
    schedules: int
    discussions: int
    reviews: int
    recaps: int
