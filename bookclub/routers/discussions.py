"""Discussions router."""

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
from bookclub.schemas.auth import UserSession
from bookclub.schemas.content import DiscussionCreate, DiscussionRead
from bookclub.services import content_service

router = APIRouter(prefix="/discussions", tags=["Discussions"])


def _get_discussion_or_404(db: Session, discussion_id: UUID):
    discussion = content_service.get_discussion(db, discussion_id)
    if not discussion:
        raise HTTPException(status_code=404, detail="Discussion not found")
    return discussion


@router.get("", response_model=list[DiscussionRead])
def list_discussions(
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    return [content_service.to_discussion_read(d) for d in content_service.list_discussions(db)]


@router.post(
    "",
    response_model=DiscussionRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_discussion(
    data: DiscussionCreate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    try:
        discussion = content_service.create_discussion(db, session.user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return content_service.to_discussion_read(discussion)


@router.get("/{discussion_id}", response_model=DiscussionRead)
def get_discussion(
    discussion_id: UUID,
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    return content_service.to_discussion_read(_get_discussion_or_404(db, discussion_id))


@router.delete(
    "/{discussion_id}", status_code=204, dependencies=[Depends(require_csrf_header)]
)
def delete_discussion(
    discussion_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a discussion (author or admin)."""
    discussion = _get_discussion_or_404(db, discussion_id)
    ensure_allowed(session, Action.DELETE_CONTENT, discussion)
    content_service.delete_discussion(db, discussion)
