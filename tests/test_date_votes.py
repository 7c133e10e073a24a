"""Tests for the date-vote ledger and month calendar."""

from datetime import date

import pytest
from httpx import AsyncClient

from bookclub.db.models import DateVote
from bookclub.services import date_vote_service
from conftest import auth_headers


def test_month_window_covers_whole_month():
    assert date_vote_service.month_window(date(2024, 2, 14)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert date_vote_service.month_window(date(2025, 12, 31)) == (date(2025, 12, 1), date(2025, 12, 31))


def test_cast_twice_creates_one_row(db, member):
    assert date_vote_service.cast_vote(db, member.id, date(2025, 3, 10)) is True
    assert date_vote_service.cast_vote(db, member.id, date(2025, 3, 10)) is False

    assert db.query(DateVote).filter(DateVote.user_id == member.id).count() == 1


def test_retract_removes_exactly_that_vote(db, member):
    date_vote_service.cast_vote(db, member.id, date(2025, 3, 10))
    date_vote_service.cast_vote(db, member.id, date(2025, 3, 11))

    assert date_vote_service.retract_vote(db, member.id, date(2025, 3, 10)) is True
    assert date_vote_service.retract_vote(db, member.id, date(2025, 3, 10)) is False

    remaining = [v.vote_date for v in db.query(DateVote).all()]
    assert remaining == [date(2025, 3, 11)]


def test_cannot_vote_on_confirmed_date(db, member, make_schedule):
    make_schedule(date(2025, 3, 10))
    with pytest.raises(ValueError):
        date_vote_service.cast_vote(db, member.id, date(2025, 3, 10))


def test_tallies_group_votes_by_date(db, member, other_member):
    date_vote_service.cast_vote(db, member.id, date(2025, 3, 10))
    date_vote_service.cast_vote(db, other_member.id, date(2025, 3, 10))
    date_vote_service.cast_vote(db, other_member.id, date(2025, 3, 3))
    # Outside the month window
    date_vote_service.cast_vote(db, member.id, date(2025, 4, 1))

    votes = date_vote_service.list_votes_in_month(db, date(2025, 3, 20))
    tallies = date_vote_service.tally(votes, member.id)

    assert [t.date for t in tallies] == [date(2025, 3, 3), date(2025, 3, 10)]
    assert tallies[0].count == 1
    assert tallies[0].voted_by_me is False
    assert tallies[1].count == 2
    assert sorted(tallies[1].voters) == ["Jun", "Mina"]
    assert tallies[1].voted_by_me is True


@pytest.mark.asyncio
async def test_vote_and_retract_via_api(client: AsyncClient, member):
    headers = auth_headers(member)

    response = await client.post("/schedule/votes", json={"date": "2025-03-10"}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"date": "2025-03-10", "voted": True, "changed": True}

    response = await client.post("/schedule/votes", json={"date": "2025-03-10"}, headers=headers)
    assert response.json()["changed"] is False

    response = await client.get("/schedule", params={"date": "2025-03-01"}, headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["month_start"] == "2025-03-01"
    assert data["month_end"] == "2025-03-31"
    assert data["tallies"] == [
        {"date": "2025-03-10", "count": 1, "voters": ["Mina"], "voted_by_me": True}
    ]
    assert data["current_user_id"] == str(member.id)

    response = await client.delete("/schedule/votes/2025-03-10", headers=headers)
    assert response.status_code == 200
    assert response.json()["changed"] is True


@pytest.mark.asyncio
async def test_calendar_lists_members_and_nominatable_books(
    client: AsyncClient, member, pending, make_book
):
    make_book("Waiting Book")
    response = await client.get("/schedule", params={"date": "2025-03-01"}, headers=auth_headers(member))

    data = response.json()
    member_ids = {m["id"] for m in data["members"]}
    assert str(member.id) in member_ids
    assert str(pending.id) not in member_ids
    assert [b["title"] for b in data["available_books"]] == ["Waiting Book"]


@pytest.mark.asyncio
async def test_visitor_cannot_vote(client: AsyncClient, visitor):
    response = await client.post(
        "/schedule/votes", json={"date": "2025-03-10"}, headers=auth_headers(visitor)
    )
    assert response.status_code == 403
