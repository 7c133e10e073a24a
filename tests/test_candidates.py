"""Tests for book candidates, book votes and final selection."""

import pytest
from httpx import AsyncClient

from bookclub.db.enums import BookStatus
from bookclub.db.models import BookCandidate, BookVote
from bookclub.services import candidate_service, meeting_service, schedule_service
from conftest import auth_headers


def test_adding_candidate_marks_book_nominated(db, make_schedule, make_book):
    schedule = make_schedule()
    book = make_book()

    candidate_service.add_candidate(db, schedule, book.id)

    db.refresh(book)
    assert book.status == BookStatus.NOMINATED.value
    assert candidate_service.is_candidate(db, schedule.id, book.id)


def test_duplicate_candidate_is_rejected(db, make_schedule, make_book):
    schedule = make_schedule()
    book = make_book()
    candidate_service.add_candidate(db, schedule, book.id)

    with pytest.raises(schedule_service.CandidateExistsError):
        candidate_service.add_candidate(db, schedule, book.id)
    assert db.query(BookCandidate).count() == 1


def test_vote_requires_candidate(db, member, make_schedule, make_book):
    schedule = make_schedule()
    book = make_book()

    with pytest.raises(schedule_service.NotACandidateError):
        candidate_service.vote(db, schedule.id, book.id, member.id)
    assert db.query(BookVote).count() == 0


def test_vote_is_idempotent(db, member, make_schedule, make_book):
    schedule = make_schedule()
    book = make_book()
    candidate_service.add_candidate(db, schedule, book.id)

    assert candidate_service.vote(db, schedule.id, book.id, member.id) is True
    assert candidate_service.vote(db, schedule.id, book.id, member.id) is False
    assert db.query(BookVote).count() == 1

    assert candidate_service.unvote(db, schedule.id, book.id, member.id) is True
    assert candidate_service.unvote(db, schedule.id, book.id, member.id) is False


def test_candidates_sorted_by_votes_with_voter_names(db, member, other_member, make_schedule, make_book):
    schedule = make_schedule()
    first = make_book("First")
    second = make_book("Second")
    candidate_service.add_candidate(db, schedule, first.id)
    candidate_service.add_candidate(db, schedule, second.id)
    candidate_service.vote(db, schedule.id, second.id, member.id)
    candidate_service.vote(db, schedule.id, second.id, other_member.id)
    candidate_service.vote(db, schedule.id, first.id, other_member.id)

    result = candidate_service.list_candidates(db, schedule, member.id)

    assert [c.book.title for c in result.candidates] == ["Second", "First"]
    assert result.candidates[0].vote_count == 2
    assert sorted(result.candidates[0].voters) == ["Jun", "Mina"]
    assert result.candidates[0].voted_by_me is True
    assert result.candidates[1].voted_by_me is False


def test_select_non_candidate_changes_nothing(db, make_schedule, make_book):
    schedule = make_schedule()
    book = make_book()

    with pytest.raises(schedule_service.NotACandidateError):
        candidate_service.select_final_book(db, schedule, book.id)

    db.refresh(schedule)
    db.refresh(book)
    assert schedule.selected_book_id is None
    assert book.status == BookStatus.WAITING.value


def test_select_sets_book_and_status(db, make_schedule, make_book):
    schedule = make_schedule()
    book = make_book()
    candidate_service.add_candidate(db, schedule, book.id)

    candidate_service.select_final_book(db, schedule, book.id)

    db.refresh(book)
    assert schedule.selected_book_id == book.id
    assert book.status == BookStatus.SELECTED.value


def test_selection_locks_candidates(db, make_schedule, make_book):
    schedule = make_schedule()
    chosen = make_book("Chosen")
    late = make_book("Late")
    candidate_service.add_candidate(db, schedule, chosen.id)
    candidate_service.select_final_book(db, schedule, chosen.id)

    with pytest.raises(schedule_service.SelectionLockedError):
        candidate_service.add_candidate(db, schedule, late.id)

    candidate = db.query(BookCandidate).one()
    with pytest.raises(schedule_service.SelectionLockedError):
        candidate_service.remove_candidate(db, schedule, candidate)


def test_selection_is_final(db, make_schedule, make_book):
    schedule = make_schedule()
    first = make_book("First")
    second = make_book("Second")
    candidate_service.add_candidate(db, schedule, first.id)
    candidate_service.add_candidate(db, schedule, second.id)
    candidate_service.select_final_book(db, schedule, first.id)

    with pytest.raises(schedule_service.SelectionLockedError):
        candidate_service.select_final_book(db, schedule, second.id)

    # Re-selecting the same book is harmless
    candidate_service.select_final_book(db, schedule, first.id)

    db.refresh(schedule)
    db.refresh(second)
    assert schedule.selected_book_id == first.id
    assert second.status == BookStatus.NOMINATED.value


def test_selection_locked_after_reveal(db, make_schedule, make_book):
    schedule = make_schedule()
    chosen = make_book("Chosen")
    late = make_book("Late")
    candidate_service.add_candidate(db, schedule, chosen.id)
    candidate_service.add_candidate(db, schedule, late.id)
    candidate_service.select_final_book(db, schedule, chosen.id)
    meeting_service.reveal(db, schedule)

    for book in (chosen, late):
        with pytest.raises(schedule_service.SelectionLockedError):
            candidate_service.select_final_book(db, schedule, book.id)

    db.refresh(chosen)
    db.refresh(late)
    assert schedule.selected_book_id == chosen.id
    assert chosen.status == BookStatus.COMPLETED.value
    assert late.status == BookStatus.NOMINATED.value


def test_revealed_meeting_without_book_cannot_select(db, make_schedule, make_book):
    schedule = make_schedule()
    book = make_book()
    candidate_service.add_candidate(db, schedule, book.id)
    meeting_service.reveal(db, schedule)

    with pytest.raises(schedule_service.SelectionLockedError):
        candidate_service.select_final_book(db, schedule, book.id)

    db.refresh(book)
    assert schedule.selected_book_id is None
    assert book.status == BookStatus.NOMINATED.value


def test_remove_candidate_drops_its_votes(db, member, make_schedule, make_book):
    schedule = make_schedule()
    book = make_book()
    candidate = candidate_service.add_candidate(db, schedule, book.id)
    candidate_service.vote(db, schedule.id, book.id, member.id)

    candidate_service.remove_candidate(db, schedule, candidate)

    assert db.query(BookCandidate).count() == 0
    assert db.query(BookVote).count() == 0


@pytest.mark.asyncio
async def test_presenter_nominates_and_members_vote(
    client: AsyncClient, presenter, member, other_member, make_schedule, make_book
):
    schedule = make_schedule()
    book = make_book()

    response = await client.post(
        f"/schedules/{schedule.id}/candidates",
        json={"book_id": str(book.id)},
        headers=auth_headers(presenter),
    )
    assert response.status_code == 201
    assert len(response.json()["candidates"]) == 1

    response = await client.post(
        f"/schedules/{schedule.id}/candidates",
        json={"book_id": str(book.id)},
        headers=auth_headers(presenter),
    )
    assert response.status_code == 409

    for voter in (member, other_member):
        response = await client.post(
            f"/schedules/{schedule.id}/candidates/{book.id}/vote",
            headers=auth_headers(voter),
        )
        assert response.status_code == 200

    response = await client.get(
        f"/schedules/{schedule.id}/candidates", headers=auth_headers(member)
    )
    candidate = response.json()["candidates"][0]
    assert candidate["vote_count"] == 2
    assert candidate["voted_by_me"] is True


@pytest.mark.asyncio
async def test_non_presenter_cannot_nominate_or_select(
    client: AsyncClient, member, make_schedule, make_book
):
    schedule = make_schedule()
    book = make_book()

    response = await client.post(
        f"/schedules/{schedule.id}/candidates",
        json={"book_id": str(book.id)},
        headers=auth_headers(member),
    )
    assert response.status_code == 403

    response = await client.post(
        f"/schedules/{schedule.id}/selection",
        json={"book_id": str(book.id)},
        headers=auth_headers(member),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_vote_on_non_candidate_returns_400(client: AsyncClient, member, make_schedule, make_book):
    schedule = make_schedule()
    book = make_book()
    response = await client.post(
        f"/schedules/{schedule.id}/candidates/{book.id}/vote",
        headers=auth_headers(member),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_remove_candidate_via_api(client: AsyncClient, admin, make_schedule, make_book):
    schedule = make_schedule()
    book = make_book()
    await client.post(
        f"/schedules/{schedule.id}/candidates",
        json={"book_id": str(book.id)},
        headers=auth_headers(admin),
    )
    listing = await client.get(f"/schedules/{schedule.id}/candidates", headers=auth_headers(admin))
    candidate_id = listing.json()["candidates"][0]["id"]

    response = await client.delete(
        f"/schedules/{schedule.id}/candidates/{candidate_id}", headers=auth_headers(admin)
    )
    assert response.status_code == 204

    response = await client.delete(
        f"/schedules/{schedule.id}/candidates/{candidate_id}", headers=auth_headers(admin)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_reselecting_another_book_returns_409(
    client: AsyncClient, admin, make_schedule, make_book
):
    schedule = make_schedule()
    first = make_book("First")
    second = make_book("Second")
    for book in (first, second):
        await client.post(
            f"/schedules/{schedule.id}/candidates",
            json={"book_id": str(book.id)},
            headers=auth_headers(admin),
        )

    response = await client.post(
        f"/schedules/{schedule.id}/selection",
        json={"book_id": str(first.id)},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200

    response = await client.post(
        f"/schedules/{schedule.id}/selection",
        json={"book_id": str(second.id)},
        headers=auth_headers(admin),
    )
    assert response.status_code == 409

    response = await client.get(f"/schedules/{schedule.id}", headers=auth_headers(admin))
    assert response.json()["selected_book_id"] == str(first.id)
