"""Gallery router - photo recaps."""

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
from bookclub.schemas.content import Gallery, RecapCreate, RecapRead
from bookclub.services import content_service

router = APIRouter(prefix="/gallery", tags=["Gallery"])


def _get_recap_or_404(db: Session, recap_id: UUID):
    recap = content_service.get_recap(db, recap_id)
    if not recap:
        raise HTTPException(status_code=404, detail="Recap not found")
    return recap


@router.get("", response_model=Gallery)
def get_gallery(
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    """Every recap photo, newest recap first."""
    return content_service.get_gallery(db)


@router.post(
    "",
    response_model=RecapRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_recap(
    data: RecapCreate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    """Post a recap; photos are URLs returned by /upload."""
    try:
        recap = content_service.create_recap(db, session.user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return content_service.to_recap_read(recap)


@router.get("/{recap_id}", response_model=RecapRead)
def get_recap(
    recap_id: UUID,
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    return content_service.to_recap_read(_get_recap_or_404(db, recap_id))


@router.delete(
    "/{recap_id}", status_code=204, dependencies=[Depends(require_csrf_header)]
)
def delete_recap(
    recap_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a recap (author or admin)."""
    recap = _get_recap_or_404(db, recap_id)
    ensure_allowed(session, Action.DELETE_CONTENT, recap)
    content_service.delete_recap(db, recap)
