"""Board router - free-form posts."""

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
from bookclub.schemas.board import (
    BoardCommentCreate,
    BoardCommentRead,
    BoardPostCreate,
    BoardPostDetail,
    BoardPostRead,
)
from bookclub.services import board_service

router = APIRouter(prefix="/board", tags=["Board"])


def _get_post_or_404(db: Session, post_id: UUID):
    post = board_service.get_post(db, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@router.get("", response_model=list[BoardPostRead])
def list_posts(
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    return board_service.list_posts(db)


@router.post(
    "",
    response_model=BoardPostRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_post(
    data: BoardPostCreate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    try:
        post = board_service.create_post(db, session.user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return board_service.to_post_read(post)


@router.get("/{post_id}", response_model=BoardPostDetail)
def get_post(
    post_id: UUID,
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    """Post with its comments."""
    return board_service.get_post_detail(db, _get_post_or_404(db, post_id))


@router.delete(
    "/{post_id}", status_code=204, dependencies=[Depends(require_csrf_header)]
)
def delete_post(
    post_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a post (author or admin)."""
    post = _get_post_or_404(db, post_id)
    ensure_allowed(session, Action.DELETE_CONTENT, post)
    board_service.delete_post(db, post)


@router.post(
    "/{post_id}/comments",
    response_model=BoardCommentRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def add_comment(
    post_id: UUID,
    data: BoardCommentCreate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    post = _get_post_or_404(db, post_id)
    content = data.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Content is required")
    comment = board_service.add_comment(db, post, session.user_id, content)
    return board_service.to_comment_read(comment)
