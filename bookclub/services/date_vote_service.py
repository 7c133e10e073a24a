"""Date-vote ledger - member availability per calendar date."""

import calendar
from collections import defaultdict
from datetime import date
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookclub.db.models import DateVote, Schedule
from bookclub.schemas.schedule import DateTally, DateVoteRead
from bookclub.services import member_service


def month_window(day: date) -> tuple[date, date]:
    """First and last day (inclusive) of the month containing ``day``."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def has_vote(db: Session, user_id: UUID, vote_date: date) -> bool:
    return (
        db.query(DateVote.id)
        .filter(DateVote.user_id == user_id, DateVote.vote_date == vote_date)
        .first()
        is not None
    )


def cast_vote(db: Session, user_id: UUID, vote_date: date) -> bool:
    """
    Record that the member is available on ``vote_date``.

    Idempotent: returns False when the vote already existed, including
    when a concurrent request inserted it first.

    Raises:
        ValueError: The date already has a confirmed meeting
    """
    if db.query(Schedule.id).filter(Schedule.meeting_date == vote_date).first():
        raise ValueError("A meeting is already confirmed on this date")

    if has_vote(db, user_id, vote_date):
        return False

    db.add(DateVote(user_id=user_id, vote_date=vote_date))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    return True


def retract_vote(db: Session, user_id: UUID, vote_date: date) -> bool:
    """Remove the member's vote for ``vote_date``. Returns whether a row was removed."""
    deleted = (
        db.query(DateVote)
        .filter(DateVote.user_id == user_id, DateVote.vote_date == vote_date)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0


def list_votes_in_month(db: Session, day: date) -> list[DateVoteRead]:
    """Every vote in the month containing ``day``, with voter names."""
    start, end = month_window(day)
    votes = (
        db.query(DateVote)
        .filter(DateVote.vote_date >= start, DateVote.vote_date <= end)
        .order_by(DateVote.vote_date.asc(), DateVote.created_at.asc())
        .all()
    )
    names = member_service.names_by_id(db, (v.user_id for v in votes))
    return [
        DateVoteRead(
            user_id=v.user_id,
            vote_date=v.vote_date,
            voter_name=names.get(v.user_id, member_service.UNKNOWN_NAME),
        )
        for v in votes
    ]


def tally(votes: list[DateVoteRead], current_user_id: UUID) -> list[DateTally]:
    """Group votes by date (ascending) with voter names."""
    by_date: dict[date, list[DateVoteRead]] = defaultdict(list)
    for vote in votes:
        by_date[vote.vote_date].append(vote)

    return [
        DateTally(
            date=vote_date,
            count=len(entries),
            voters=[e.voter_name for e in entries],
            voted_by_me=any(e.user_id == current_user_id for e in entries),
        )
        for vote_date, entries in sorted(by_date.items())
    ]
