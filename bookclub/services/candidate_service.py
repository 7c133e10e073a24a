"""Book-candidate ledger - nominations, book votes and final selection."""

import logging
from collections import defaultdict
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from bookclub.db.enums import BookStatus
from bookclub.db.models import BookCandidate, BookVote, Schedule
from bookclub.db.transaction import run_in_transaction
from bookclub.schemas.book import BookSummary
from bookclub.schemas.candidate import CandidateList, CandidateRead
from bookclub.services import book_service, member_service
from bookclub.services.schedule_service import (
    BookNotFoundError,
    CandidateExistsError,
    NotACandidateError,
    SelectionLockedError,
)

logger = logging.getLogger(__name__)


def get_candidate(db: Session, schedule_id: UUID, candidate_id: UUID) -> BookCandidate | None:
    """Get a candidate row scoped to its schedule."""
    return (
        db.query(BookCandidate)
        .filter(BookCandidate.id == candidate_id, BookCandidate.schedule_id == schedule_id)
        .first()
    )


def is_candidate(db: Session, schedule_id: UUID, book_id: UUID) -> bool:
    return (
        db.query(BookCandidate.id)
        .filter(BookCandidate.schedule_id == schedule_id, BookCandidate.book_id == book_id)
        .first()
        is not None
    )


def add_candidate(db: Session, schedule: Schedule, book_id: UUID) -> BookCandidate:
    """
    Nominate a book for a schedule.

    A book still 'waiting' becomes 'nominated'.

    Raises:
        SelectionLockedError: The final book is already chosen
        BookNotFoundError: Book does not exist
        CandidateExistsError: Book is already nominated for this schedule
    """
    if schedule.selected_book_id:
        raise SelectionLockedError("The book for this meeting has already been selected")

    book = book_service.get_book(db, book_id)
    if not book:
        raise BookNotFoundError("Book not found")

    if is_candidate(db, schedule.id, book_id):
        raise CandidateExistsError("Book is already a candidate")

    def work() -> BookCandidate:
        candidate = BookCandidate(schedule_id=schedule.id, book_id=book.id)
        db.add(candidate)
        if book.status == BookStatus.WAITING.value:
            book.status = BookStatus.NOMINATED.value
        db.flush()
        return candidate

    try:
        candidate = run_in_transaction(db, work)
    except IntegrityError:
        raise CandidateExistsError("Book is already a candidate")
    db.refresh(candidate)
    return candidate


def remove_candidate(db: Session, schedule: Schedule, candidate: BookCandidate) -> None:
    """
    Withdraw a nomination together with the votes it collected.

    Raises:
        SelectionLockedError: Candidate is the schedule's selected book
    """
    if schedule.selected_book_id == candidate.book_id:
        raise SelectionLockedError("The selected book cannot be removed")

    schedule_id, book_id = candidate.schedule_id, candidate.book_id

    def work() -> None:
        db.query(BookVote).filter(
            BookVote.schedule_id == schedule_id,
            BookVote.book_id == book_id,
        ).delete(synchronize_session=False)
        db.query(BookCandidate).filter(BookCandidate.id == candidate.id).delete(
            synchronize_session=False
        )

    run_in_transaction(db, work)
    db.expire_all()


def has_book_vote(db: Session, schedule_id: UUID, book_id: UUID, user_id: UUID) -> bool:
    return (
        db.query(BookVote.id)
        .filter(
            BookVote.schedule_id == schedule_id,
            BookVote.book_id == book_id,
            BookVote.user_id == user_id,
        )
        .first()
        is not None
    )


def vote(db: Session, schedule_id: UUID, book_id: UUID, user_id: UUID) -> bool:
    """
    Vote for a candidate book. Idempotent; returns whether a vote was added.

    Raises:
        NotACandidateError: Book is not nominated for this schedule
    """
    if not is_candidate(db, schedule_id, book_id):
        raise NotACandidateError("Book is not a candidate for this meeting")

    if has_book_vote(db, schedule_id, book_id, user_id):
        return False

    db.add(BookVote(schedule_id=schedule_id, book_id=book_id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    return True


def unvote(db: Session, schedule_id: UUID, book_id: UUID, user_id: UUID) -> bool:
    """Withdraw a book vote. Returns whether a vote was removed."""
    deleted = (
        db.query(BookVote)
        .filter(
            BookVote.schedule_id == schedule_id,
            BookVote.book_id == book_id,
            BookVote.user_id == user_id,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0


def list_candidates(db: Session, schedule: Schedule, current_user_id: UUID) -> CandidateList:
    """Candidates with vote counts and voter names, most votes first."""
    candidates = (
        db.query(BookCandidate)
        .options(joinedload(BookCandidate.book))
        .filter(BookCandidate.schedule_id == schedule.id)
        .order_by(BookCandidate.created_at.asc())
        .all()
    )
    votes = db.query(BookVote).filter(BookVote.schedule_id == schedule.id).all()
    names = member_service.names_by_id(db, (v.user_id for v in votes))

    voters_by_book: dict[UUID, list[UUID]] = defaultdict(list)
    for book_vote in votes:
        voters_by_book[book_vote.book_id].append(book_vote.user_id)

    items = []
    for candidate in candidates:
        voter_ids = voters_by_book.get(candidate.book_id, [])
        items.append(
            CandidateRead(
                id=candidate.id,
                schedule_id=candidate.schedule_id,
                book=BookSummary.model_validate(candidate.book),
                vote_count=len(voter_ids),
                voters=[names.get(uid, member_service.UNKNOWN_NAME) for uid in voter_ids],
                voted_by_me=current_user_id in voter_ids,
                is_selected=candidate.book_id == schedule.selected_book_id,
            )
        )
    # Stable sort keeps nomination order among ties
    items.sort(key=lambda c: c.vote_count, reverse=True)

    return CandidateList(
        schedule_id=schedule.id,
        selected_book_id=schedule.selected_book_id,
        candidates=items,
    )


def select_final_book(db: Session, schedule: Schedule, book_id: UUID) -> Schedule:
    """
    Finalize the meeting's book.

    Sets the schedule's selected book and marks the book 'selected' in one
    transaction. The choice is final once made or once the meeting is
    revealed; selecting the same book again changes nothing.

    Raises:
        SelectionLockedError: Meeting revealed or a different book already selected
        NotACandidateError: Book is not nominated for this schedule
    """
    if schedule.is_revealed:
        raise SelectionLockedError("The book cannot change after the meeting is revealed")
    if schedule.selected_book_id and schedule.selected_book_id != book_id:
        raise SelectionLockedError("The book for this meeting has already been selected")

    if not is_candidate(db, schedule.id, book_id):
        raise NotACandidateError("Book is not a candidate for this meeting")

    book = book_service.get_book(db, book_id)
    if not book:
        raise BookNotFoundError("Book not found")

    def work() -> Schedule:
        schedule.selected_book_id = book.id
        book.status = BookStatus.SELECTED.value
        return schedule

    run_in_transaction(db, work)
    db.refresh(schedule)
    logger.info("Selected book %s for schedule %s", book.id, schedule.id)
    return schedule
