"""Admin router - approval queue, roles and dashboard counters."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bookclub.core.deps import get_db, require_action, require_csrf_header
from bookclub.core.policies import Action
from bookclub.schemas.auth import UserSession
from bookclub.schemas.member import MemberRead, RoleUpdate, SiteStats
from bookclub.services import member_service

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_action(Action.MANAGE_MEMBERS))],
)


def _get_member_or_404(db: Session, member_id: UUID):
    member = member_service.get_member(db, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


@router.get("/members", response_model=list[MemberRead])
def list_members(db: Session = Depends(get_db)):
    """All members, newest first."""
    return member_service.list_members(db)


@router.get("/members/pending", response_model=list[MemberRead])
def list_pending(db: Session = Depends(get_db)):
    """Sign-ups awaiting approval."""
    return member_service.list_pending(db)


@router.get("/stats", response_model=SiteStats)
def get_stats(db: Session = Depends(get_db)):
    return member_service.get_stats(db)


@router.post(
    "/members/{member_id}/approve",
    response_model=MemberRead,
    dependencies=[Depends(require_csrf_header)],
)
def approve_member(member_id: UUID, db: Session = Depends(get_db)):
    """Approve a pending sign-up as a member."""
    member = _get_member_or_404(db, member_id)
    try:
        return member_service.approve_member(db, member)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete(
    "/members/{member_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def reject_member(member_id: UUID, db: Session = Depends(get_db)):
    """Reject (delete) a pending sign-up."""
    member = _get_member_or_404(db, member_id)
    try:
        member_service.reject_member(db, member)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.patch(
    "/members/{member_id}/role",
    response_model=MemberRead,
    dependencies=[Depends(require_csrf_header)],
)
def change_role(
    member_id: UUID,
    data: RoleUpdate,
    session: UserSession = Depends(require_action(Action.MANAGE_MEMBERS)),
    db: Session = Depends(get_db),
):
    """
    Change a member's role.

    Admins cannot demote themselves.
    """
    member = _get_member_or_404(db, member_id)
    try:
        return member_service.change_role(db, session.user_id, member, data.role)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
