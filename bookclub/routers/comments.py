"""Comments router - comments on discussions, reviews and recaps."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from bookclub.core.deps import (
    ensure_allowed,
    get_current_session,
    get_db,
    require_action,
    require_csrf_header,
)
from bookclub.core.policies import Action
from bookclub.db.enums import CommentableType
from bookclub.schemas.auth import UserSession
from bookclub.schemas.content import CommentCreate, CommentRead
from bookclub.services import content_service

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("", response_model=list[CommentRead])
def list_comments(
    type: CommentableType = Query(...),
    id: UUID = Query(...),
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    """Comments on one discussion, review or recap, oldest first."""
    comments = content_service.list_comments(db, type, id)
    return [content_service.to_comment_read(c) for c in comments]


@router.post(
    "",
    response_model=CommentRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def add_comment(
    data: CommentCreate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    if not content_service.commentable_exists(db, data.commentable_type, data.commentable_id):
        raise HTTPException(status_code=404, detail=f"{data.commentable_type.value.title()} not found")
    try:
        comment = content_service.add_comment(
            db,
            session.user_id,
            data.commentable_type,
            data.commentable_id,
            data.content,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return content_service.to_comment_read(comment)


@router.delete(
    "/{comment_id}", status_code=204, dependencies=[Depends(require_csrf_header)]
)
def delete_comment(
    comment_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a comment (author or admin)."""
    comment = content_service.get_comment(db, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    ensure_allowed(session, Action.DELETE_CONTENT, comment)
    content_service.delete_comment(db, comment)
