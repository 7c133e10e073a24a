"""Member service - profiles, approval queue, roles and name resolution."""

import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookclub.db.enums import ROLES_CLUB_MEMBERS, Role
from bookclub.db.models import Book, Discussion, Member, Recap, Review, Schedule
from bookclub.schemas.auth import ProfileUpdate
from bookclub.schemas.member import SiteStats

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"


def get_member(db: Session, member_id: UUID) -> Member | None:
    """Get a member by ID."""
    return db.query(Member).filter(Member.id == member_id).first()


def ensure_member(
    db: Session,
    user_id: str | UUID,
    email: str,
    name: str | None = None,
) -> Member:
    """
    Return the member for an identity subject, creating it on first sight.

    New members start as 'pending' until an admin approves them.
    """
    try:
        member_id = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
    except ValueError:
        raise ValueError("Invalid identity subject")

    member = get_member(db, member_id)
    if member:
        return member

    display_name = (name or "").strip() or email.split("@", 1)[0]
    member = Member(
        id=member_id,
        email=email.lower(),
        name=display_name,
        role=Role.PENDING.value,
    )
    db.add(member)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # Concurrent first request for the same subject already created it
        member = get_member(db, member_id)
        if member:
            return member
        raise ValueError("Email is already registered to another account")
    db.refresh(member)
    logger.info("Provisioned pending member %s", member.id)
    return member


def update_profile(db: Session, member: Member, data: ProfileUpdate) -> Member:
    """Update the member's own display name and avatar."""
    if data.name is not None:
        member.name = data.name.strip()
    if "avatar_url" in data.model_fields_set:
        member.avatar_url = data.avatar_url or None
    db.commit()
    db.refresh(member)
    return member


def names_by_id(db: Session, member_ids) -> dict[UUID, str]:
    """Resolve display names for a set of member ids in one query."""
    ids = {member_id for member_id in member_ids if member_id}
    if not ids:
        return {}
    rows = db.query(Member.id, Member.name).filter(Member.id.in_(ids)).all()
    return {row.id: row.name for row in rows}


def list_members(db: Session) -> list[Member]:
    """All members, newest first."""
    return db.query(Member).order_by(Member.created_at.desc()).all()


def list_pending(db: Session) -> list[Member]:
    """Members awaiting approval, oldest first."""
    return (
        db.query(Member)
        .filter(Member.role == Role.PENDING.value)
        .order_by(Member.created_at.asc())
        .all()
    )


def list_club_members(db: Session) -> list[Member]:
    """Admins and members (submission roster, presenter choices), by name."""
    return (
        db.query(Member)
        .filter(Member.role.in_([r.value for r in ROLES_CLUB_MEMBERS]))
        .order_by(Member.name.asc())
        .all()
    )


def approve_member(db: Session, member: Member) -> Member:
    """Promote a pending member to 'member'."""
    if member.role != Role.PENDING.value:
        raise ValueError("Member is not awaiting approval")
    member.role = Role.MEMBER.value
    db.commit()
    db.refresh(member)
    logger.info("Approved member %s", member.id)
    return member


def reject_member(db: Session, member: Member) -> None:
    """Delete a pending sign-up."""
    if member.role != Role.PENDING.value:
        raise ValueError("Only pending sign-ups can be rejected")
    member_id = member.id
    db.delete(member)
    db.commit()
    logger.info("Rejected pending member %s", member_id)


def change_role(db: Session, actor_id: UUID, member: Member, role: Role) -> Member:
    """Change a member's role (admin console)."""
    if role == Role.PENDING:
        raise ValueError("Cannot move a member back to pending")
    if member.id == actor_id and role != Role.ADMIN:
        raise ValueError("Admins cannot demote themselves")
    previous = member.role
    member.role = role.value
    db.commit()
    db.refresh(member)
    logger.info("Changed role of member %s from %s to %s", member.id, previous, role.value)
    return member


def get_stats(db: Session) -> SiteStats:
    """Counters for the admin dashboard."""
    def _count(model, *criteria) -> int:
        query = db.query(func.count()).select_from(model)
        if criteria:
            query = query.filter(*criteria)
        return query.scalar() or 0

    return SiteStats(
        members=_count(Member, Member.role != Role.PENDING.value),
        books=_count(Book),
        schedules=_count(Schedule),
        discussions=_count(Discussion),
        reviews=_count(Review),
        recaps=_count(Recap),
    )
