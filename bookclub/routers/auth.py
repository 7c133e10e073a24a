"""Auth router - the caller's own profile."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookclub.core.deps import get_current_member, get_db, require_csrf_header
from bookclub.db.enums import Role
from bookclub.schemas.auth import MeResponse, ProfileUpdate
from bookclub.services import member_service

router = APIRouter(prefix="/auth", tags=["Auth"])


def _to_me(member) -> MeResponse:
    return MeResponse(
        user_id=member.id,
        email=member.email,
        name=member.name,
        avatar_url=member.avatar_url,
        role=Role(member.role),
        created_at=member.created_at,
    )


@router.get("/me", response_model=MeResponse)
def get_me(member=Depends(get_current_member)):
    """
    Get the caller's profile.

    Available to every authenticated account, including ones awaiting approval.
    """
    return _to_me(member)


@router.patch(
    "/me", response_model=MeResponse, dependencies=[Depends(require_csrf_header)]
)
def update_me(
    data: ProfileUpdate,
    member=Depends(get_current_member),
    db: Session = Depends(get_db),
):
    """Update the caller's display name or avatar."""
    member = member_service.update_profile(db, member, data)
    return _to_me(member)
