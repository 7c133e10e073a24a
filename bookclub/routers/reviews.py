"""Reviews router."""

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
from bookclub.schemas.content import ReviewCreate, ReviewRead
from bookclub.services import content_service

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def _get_review_or_404(db: Session, review_id: UUID):
    review = content_service.get_review(db, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


@router.get("", response_model=list[ReviewRead])
def list_reviews(
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    return [content_service.to_review_read(r) for r in content_service.list_reviews(db)]


@router.post(
    "",
    response_model=ReviewRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_review(
    data: ReviewCreate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    """Review a book with a 1-5 star rating."""
    try:
        review = content_service.create_review(db, session.user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return content_service.to_review_read(review)


@router.get("/{review_id}", response_model=ReviewRead)
def get_review(
    review_id: UUID,
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    return content_service.to_review_read(_get_review_or_404(db, review_id))


@router.delete(
    "/{review_id}", status_code=204, dependencies=[Depends(require_csrf_header)]
)
def delete_review(
    review_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a review (author or admin)."""
    review = _get_review_or_404(db, review_id)
    ensure_allowed(session, Action.DELETE_CONTENT, review)
    content_service.delete_review(db, review)
