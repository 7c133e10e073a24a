"""Books router - the club catalog."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from bookclub.core.deps import get_db, require_action, require_csrf_header
from bookclub.core.policies import Action
from bookclub.schemas.auth import UserSession
from bookclub.schemas.book import BookCreate, BookDetail, BookRead, BookSearchResult
from bookclub.services import book_search_service, book_service

router = APIRouter(prefix="/books", tags=["Books"])


@router.get("", response_model=list[BookRead])
def list_books(
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    """All books, newest first."""
    return [book_service.to_book_read(b) for b in book_service.list_books(db)]


@router.post(
    "",
    response_model=BookRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_book(
    data: BookCreate,
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
    db: Session = Depends(get_db),
):
    """Add a book to the catalog."""
    try:
        book = book_service.create_book(db, session.user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return book_service.to_book_read(book)


@router.get("/search", response_model=list[BookSearchResult])
async def search_books(
    q: str = Query(..., min_length=1, max_length=200),
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
):
    """Look a book up externally to prefill the catalog form."""
    try:
        return await book_search_service.search_books(q)
    except book_search_service.BookSearchError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/{book_id}", response_model=BookDetail)
def get_book(
    book_id: UUID,
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    """Book with related meetings, discussions and reviews."""
    book = book_service.get_book(db, book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return book_service.get_book_detail(db, book)
