"""Book catalog service."""

from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from bookclub.db.enums import BookStatus
from bookclub.db.models import Book, Discussion, Review, Schedule
from bookclub.schemas.book import (
    BookCreate,
    BookDetail,
    BookPostItem,
    BookRead,
    BookScheduleItem,
)
from bookclub.services.member_service import UNKNOWN_NAME


def to_book_read(book: Book) -> BookRead:
    """Convert Book model to read schema."""
    return BookRead(
        id=book.id,
        title=book.title,
        author=book.author,
        cover_url=book.cover_url,
        description=book.description,
        isbn=book.isbn,
        category=book.category,
        selection_reason=book.selection_reason,
        status=BookStatus(book.status),
        created_by=book.created_by,
        creator_name=book.creator.name if book.creator else None,
        created_at=book.created_at,
    )


def get_book(db: Session, book_id: UUID) -> Book | None:
    """Get a book by ID."""
    return db.query(Book).filter(Book.id == book_id).first()


def list_books(db: Session) -> list[Book]:
    """All books, newest first."""
    return (
        db.query(Book)
        .options(joinedload(Book.creator))
        .order_by(Book.created_at.desc())
        .all()
    )


def list_available_for_nomination(db: Session) -> list[Book]:
    """Books that can still be put forward as meeting candidates."""
    return (
        db.query(Book)
        .options(joinedload(Book.creator))
        .filter(Book.status.in_(BookStatus.available_for_nomination()))
        .order_by(Book.created_at.desc())
        .all()
    )


def create_book(db: Session, user_id: UUID, data: BookCreate) -> Book:
    """Add a book to the catalog (status 'waiting')."""
    title = data.title.strip()
    author = data.author.strip()
    if not title or not author:
        raise ValueError("Title and author are required")

    book = Book(
        title=title,
        author=author,
        cover_url=data.cover_url or None,
        description=data.description,
        isbn=data.isbn or None,
        category=data.category or None,
        selection_reason=data.selection_reason,
        status=BookStatus.WAITING.value,
        created_by=user_id,
    )
    db.add(book)
    db.commit()
    db.refresh(book)
    return book


def get_book_detail(db: Session, book: Book) -> BookDetail:
    """Book plus the meetings, discussions and reviews that reference it."""
    schedules = (
        db.query(Schedule)
        .filter(Schedule.selected_book_id == book.id)
        .order_by(Schedule.meeting_date.desc())
        .all()
    )
    discussions = (
        db.query(Discussion)
        .options(joinedload(Discussion.member))
        .filter(Discussion.book_id == book.id)
        .order_by(Discussion.created_at.desc())
        .all()
    )
    reviews = (
        db.query(Review)
        .options(joinedload(Review.member))
        .filter(Review.book_id == book.id)
        .order_by(Review.created_at.desc())
        .all()
    )

    return BookDetail(
        book=to_book_read(book),
        schedules=[
            BookScheduleItem(
                id=s.id,
                title=s.title,
                meeting_date=s.meeting_date,
                is_revealed=s.is_revealed,
            )
            for s in schedules
        ],
        discussions=[
            BookPostItem(
                id=d.id,
                title=d.title,
                author_name=d.member.name if d.member else UNKNOWN_NAME,
                created_at=d.created_at,
            )
            for d in discussions
        ],
        reviews=[
            BookPostItem(
                id=r.id,
                title=r.title,
                author_name=r.member.name if r.member else UNKNOWN_NAME,
                created_at=r.created_at,
                rating=r.rating,
            )
            for r in reviews
        ],
    )
