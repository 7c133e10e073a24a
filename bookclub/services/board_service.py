"""Board service - free-form posts and their comments."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from bookclub.db.models import BoardComment, BoardPost
from bookclub.schemas.board import (
    BoardCommentRead,
    BoardPostCreate,
    BoardPostDetail,
    BoardPostRead,
)
from bookclub.services.content_service import sanitize_html
from bookclub.services.member_service import UNKNOWN_NAME


def to_post_read(post: BoardPost, comment_count: int = 0) -> BoardPostRead:
    """Convert BoardPost model to read schema."""
    return BoardPostRead(
        id=post.id,
        user_id=post.user_id,
        author_name=post.member.name if post.member else UNKNOWN_NAME,
        title=post.title,
        content=post.content,
        comment_count=comment_count,
        created_at=post.created_at,
    )


def to_comment_read(comment: BoardComment) -> BoardCommentRead:
    return BoardCommentRead(
        id=comment.id,
        post_id=comment.post_id,
        user_id=comment.user_id,
        author_name=comment.member.name if comment.member else UNKNOWN_NAME,
        content=comment.content,
        created_at=comment.created_at,
    )


def get_post(db: Session, post_id: UUID) -> BoardPost | None:
    """Get a board post by ID."""
    return (
        db.query(BoardPost)
        .options(joinedload(BoardPost.member))
        .filter(BoardPost.id == post_id)
        .first()
    )


def list_posts(db: Session) -> list[BoardPostRead]:
    """Posts newest first, with comment counts."""
    posts = (
        db.query(BoardPost)
        .options(joinedload(BoardPost.member))
        .order_by(BoardPost.created_at.desc())
        .all()
    )
    counts = dict(
        db.query(BoardComment.post_id, func.count(BoardComment.id))
        .group_by(BoardComment.post_id)
        .all()
    )
    return [to_post_read(p, counts.get(p.id, 0)) for p in posts]


def get_post_detail(db: Session, post: BoardPost) -> BoardPostDetail:
    """Post with comments, oldest first."""
    comments = (
        db.query(BoardComment)
        .options(joinedload(BoardComment.member))
        .filter(BoardComment.post_id == post.id)
        .order_by(BoardComment.created_at.asc())
        .all()
    )
    return BoardPostDetail(
        post=to_post_read(post, len(comments)),
        comments=[to_comment_read(c) for c in comments],
    )


def create_post(db: Session, user_id: UUID, data: BoardPostCreate) -> BoardPost:
    """Create a board post; content is sanitized rich text."""
    title = data.title.strip()
    content = sanitize_html(data.content).strip()
    if not title or not content:
        raise ValueError("Title and content are required")

    post = BoardPost(user_id=user_id, title=title, content=content)
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, post: BoardPost) -> None:
    """Delete a post and its comments."""
    db.delete(post)
    db.commit()


def add_comment(db: Session, post: BoardPost, user_id: UUID, content: str) -> BoardComment:
    """Append a comment to a post."""
    comment = BoardComment(post_id=post.id, user_id=user_id, content=content)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment
