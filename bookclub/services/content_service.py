"""Content service - discussions, reviews, photo recaps and generic comments."""

from uuid import UUID

import nh3
from sqlalchemy.orm import Session, joinedload

from bookclub.db.enums import CommentableType
from bookclub.db.models import Comment, Discussion, Recap, Review
from bookclub.schemas.book import BookSummary
from bookclub.schemas.content import (
    CommentRead,
    DiscussionCreate,
    DiscussionRead,
    Gallery,
    GalleryPhoto,
    RecapCreate,
    RecapRead,
    ReviewCreate,
    ReviewRead,
)
from bookclub.services import book_service
from bookclub.services.member_service import UNKNOWN_NAME

# Allowed HTML tags for the rich text editor
ALLOWED_TAGS = {"p", "br", "strong", "em", "u", "s", "ul", "ol", "li", "a", "blockquote", "h1", "h2", "h3", "code", "pre", "img"}
ALLOWED_ATTRIBUTES = {"a": {"href", "target"}, "img": {"src", "alt"}}


def sanitize_html(html: str) -> str:
    """Sanitize HTML to prevent XSS, allowing only safe rich text tags."""
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


def _author_name(row) -> str:
    return row.member.name if row.member else UNKNOWN_NAME


def _require_text(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field} is required")
    return value


def _delete_comments_for(db: Session, commentable_type: CommentableType, target_id: UUID) -> None:
    db.query(Comment).filter(
        Comment.commentable_type == commentable_type.value,
        Comment.commentable_id == target_id,
    ).delete(synchronize_session=False)


# =============================================================================
# Discussions
# =============================================================================

def to_discussion_read(discussion: Discussion) -> DiscussionRead:
    """Convert Discussion model to read schema."""
    return DiscussionRead(
        id=discussion.id,
        user_id=discussion.user_id,
        author_name=_author_name(discussion),
        title=discussion.title,
        content=discussion.content,
        book=BookSummary.model_validate(discussion.book) if discussion.book else None,
        schedule_id=discussion.schedule_id,
        created_at=discussion.created_at,
    )


def list_discussions(db: Session) -> list[Discussion]:
    """Discussions newest first."""
    return (
        db.query(Discussion)
        .options(joinedload(Discussion.member), joinedload(Discussion.book))
        .order_by(Discussion.created_at.desc())
        .all()
    )


def get_discussion(db: Session, discussion_id: UUID) -> Discussion | None:
    return (
        db.query(Discussion)
        .options(joinedload(Discussion.member), joinedload(Discussion.book))
        .filter(Discussion.id == discussion_id)
        .first()
    )


def create_discussion(db: Session, user_id: UUID, data: DiscussionCreate) -> Discussion:
    """Create a discussion about a book."""
    if data.book_id and not book_service.get_book(db, data.book_id):
        raise ValueError("Book not found")

    discussion = Discussion(
        user_id=user_id,
        book_id=data.book_id,
        schedule_id=data.schedule_id,
        title=_require_text(data.title, "Title"),
        content=_require_text(sanitize_html(data.content), "Content"),
    )
    db.add(discussion)
    db.commit()
    db.refresh(discussion)
    return discussion


def delete_discussion(db: Session, discussion: Discussion) -> None:
    """Delete a discussion and its comments."""
    _delete_comments_for(db, CommentableType.DISCUSSION, discussion.id)
    db.delete(discussion)
    db.commit()


# =============================================================================
# Reviews
# =============================================================================

def to_review_read(review: Review) -> ReviewRead:
    """Convert Review model to read schema."""
    return ReviewRead(
        id=review.id,
        user_id=review.user_id,
        author_name=_author_name(review),
        title=review.title,
        content=review.content,
        rating=review.rating,
        book=BookSummary.model_validate(review.book),
        created_at=review.created_at,
    )


def list_reviews(db: Session) -> list[Review]:
    """Reviews newest first."""
    return (
        db.query(Review)
        .options(joinedload(Review.member), joinedload(Review.book))
        .order_by(Review.created_at.desc())
        .all()
    )


def get_review(db: Session, review_id: UUID) -> Review | None:
    return (
        db.query(Review)
        .options(joinedload(Review.member), joinedload(Review.book))
        .filter(Review.id == review_id)
        .first()
    )


def create_review(db: Session, user_id: UUID, data: ReviewCreate) -> Review:
    """Create a 1-5 star review of a book."""
    if not book_service.get_book(db, data.book_id):
        raise ValueError("Book not found")

    review = Review(
        user_id=user_id,
        book_id=data.book_id,
        title=_require_text(data.title, "Title"),
        content=_require_text(sanitize_html(data.content), "Content"),
        rating=data.rating,
    )
    db.add(review)
    db.commit()
    db.refresh(review)
    return review


def delete_review(db: Session, review: Review) -> None:
    """Delete a review and its comments."""
    _delete_comments_for(db, CommentableType.REVIEW, review.id)
    db.delete(review)
    db.commit()


# =============================================================================
# Recaps / gallery
# =============================================================================

def to_recap_read(recap: Recap) -> RecapRead:
    """Convert Recap model to read schema."""
    return RecapRead(
        id=recap.id,
        user_id=recap.user_id,
        author_name=_author_name(recap),
        title=recap.title,
        content=recap.content,
        photos=list(recap.photos or []),
        schedule_id=recap.schedule_id,
        created_at=recap.created_at,
    )


def get_recap(db: Session, recap_id: UUID) -> Recap | None:
    return (
        db.query(Recap)
        .options(joinedload(Recap.member))
        .filter(Recap.id == recap_id)
        .first()
    )


def get_gallery(db: Session) -> Gallery:
    """Recaps with photos (newest first) and their photos flattened in that order."""
    recaps = [
        recap
        for recap in db.query(Recap)
        .options(joinedload(Recap.member))
        .order_by(Recap.created_at.desc())
        .all()
        if recap.photos
    ]
    photos = [
        GalleryPhoto(url=url, title=recap.title, author=_author_name(recap))
        for recap in recaps
        for url in recap.photos
    ]
    return Gallery(photos=photos, recaps=[to_recap_read(r) for r in recaps])


def create_recap(db: Session, user_id: UUID, data: RecapCreate) -> Recap:
    """Create a photo recap; at least one photo URL is required."""
    photos = [url.strip() for url in data.photos if url and url.strip()]
    if not photos:
        raise ValueError("At least one photo is required")

    content = sanitize_html(data.content).strip() if data.content else None
    recap = Recap(
        user_id=user_id,
        schedule_id=data.schedule_id,
        title=_require_text(data.title, "Title"),
        content=content or None,
        photos=photos,
    )
    db.add(recap)
    db.commit()
    db.refresh(recap)
    return recap


def delete_recap(db: Session, recap: Recap) -> None:
    """Delete a recap and its comments."""
    _delete_comments_for(db, CommentableType.RECAP, recap.id)
    db.delete(recap)
    db.commit()


# =============================================================================
# Generic comments
# =============================================================================

_COMMENTABLE_MODELS = {
    CommentableType.DISCUSSION: Discussion,
    CommentableType.REVIEW: Review,
    CommentableType.RECAP: Recap,
}


def to_comment_read(comment: Comment) -> CommentRead:
    """Convert Comment model to read schema."""
    return CommentRead(
        id=comment.id,
        commentable_type=CommentableType(comment.commentable_type),
        commentable_id=comment.commentable_id,
        user_id=comment.user_id,
        author_name=_author_name(comment),
        content=comment.content,
        created_at=comment.created_at,
    )


def commentable_exists(db: Session, commentable_type: CommentableType, target_id: UUID) -> bool:
    """Whether the discussion/review/recap being commented on exists."""
    model = _COMMENTABLE_MODELS[commentable_type]
    return db.query(model.id).filter(model.id == target_id).first() is not None


def list_comments(
    db: Session,
    commentable_type: CommentableType,
    target_id: UUID,
) -> list[Comment]:
    """Comments on one item, oldest first."""
    return (
        db.query(Comment)
        .options(joinedload(Comment.member))
        .filter(
            Comment.commentable_type == commentable_type.value,
            Comment.commentable_id == target_id,
        )
        .order_by(Comment.created_at.asc())
        .all()
    )


def get_comment(db: Session, comment_id: UUID) -> Comment | None:
    return db.query(Comment).filter(Comment.id == comment_id).first()


def add_comment(
    db: Session,
    user_id: UUID,
    commentable_type: CommentableType,
    target_id: UUID,
    content: str,
) -> Comment:
    """Comment on a discussion, review or recap."""
    comment = Comment(
        commentable_type=commentable_type.value,
        commentable_id=target_id,
        user_id=user_id,
        content=_require_text(content, "Content"),
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, comment: Comment) -> None:
    db.delete(comment)
    db.commit()
