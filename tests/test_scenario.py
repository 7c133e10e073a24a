"""
End-to-end meeting lifecycle over the API.

Date vote -> confirm -> nominate -> book vote -> select -> submit -> reveal.
"""
import pytest
from httpx import AsyncClient

from bookclub.db.enums import BookStatus
from bookclub.db.models import Book, DateVote

from conftest import auth_headers


@pytest.mark.asyncio
async def test_full_meeting_lifecycle(
    client: AsyncClient, db, admin, member, other_member, presenter, make_book
):
    book_a = make_book(title="Book A", author="Author A")
    book_b = make_book(title="Book B", author="Author B")

    # Members mark their availability
    for voter in (member, other_member):
        response = await client.post(
            "/schedule/votes", json={"date": "2025-03-10"}, headers=auth_headers(voter)
        )
        assert response.status_code == 200
        assert response.json()["changed"] is True

    # Admin confirms the date; availability votes for it are cleared
    response = await client.post(
        "/schedules",
        json={"date": "2025-03-10", "presenter_id": str(presenter.id)},
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    schedule = response.json()
    schedule_id = schedule["id"]
    assert schedule["title"] == "3/10 Meeting"
    assert schedule["presenter_name"] == "Presenter"
    assert db.query(DateVote).count() == 0

    # Presenter nominates two books
    for book in (book_a, book_b):
        response = await client.post(
            f"/schedules/{schedule_id}/candidates",
            json={"book_id": str(book.id)},
            headers=auth_headers(presenter),
        )
        assert response.status_code == 201

    # Two members vote for A
    for voter in (member, other_member):
        response = await client.post(
            f"/schedules/{schedule_id}/candidates/{book_a.id}/vote",
            headers=auth_headers(voter),
        )
        assert response.status_code == 200

    response = await client.get(
        f"/schedules/{schedule_id}/candidates", headers=auth_headers(member)
    )
    candidates = response.json()["candidates"]
    assert candidates[0]["book"]["id"] == str(book_a.id)
    assert candidates[0]["vote_count"] == 2
    assert candidates[0]["voted_by_me"] is True
    assert candidates[1]["vote_count"] == 0

    # Admin finalizes A
    response = await client.post(
        f"/schedules/{schedule_id}/selection",
        json={"book_id": str(book_a.id)},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    assert response.json()["selected_book_id"] == str(book_a.id)
    db.expire_all()
    assert db.get(Book, book_a.id).status == BookStatus.SELECTED.value

    # Member submits; nobody else can see it yet
    response = await client.put(
        f"/meetings/{schedule_id}/submission",
        json={"discussion": ["topic1"], "rating": 4},
        headers=auth_headers(member),
    )
    assert response.status_code == 200

    response = await client.get(f"/meetings/{schedule_id}", headers=auth_headers(other_member))
    detail = response.json()
    assert detail["submissions"] == []
    assert detail["my_submission"] is None
    roster = {line["user_id"]: line for line in detail["roster"]}
    assert roster[str(member.id)]["has_submitted"] is True
    assert roster[str(member.id)]["has_rating"] is True

    # Presenter reveals on or after the meeting day
    response = await client.post(
        f"/meetings/{schedule_id}/reveal", headers=auth_headers(presenter)
    )
    assert response.status_code == 200
    assert response.json()["is_revealed"] is True
    db.expire_all()
    assert db.get(Book, book_a.id).status == BookStatus.COMPLETED.value

    response = await client.get(f"/meetings/{schedule_id}", headers=auth_headers(other_member))
    detail = response.json()
    assert [s["discussion"] for s in detail["submissions"]] == [["topic1"]]
    assert detail["submissions"][0]["rating"] == 4.0
    assert detail["schedule"]["can_edit_submission"] is False

    # Submissions are frozen after reveal
    response = await client.put(
        f"/meetings/{schedule_id}/submission",
        json={"discussion": ["late"]},
        headers=auth_headers(member),
    )
    assert response.status_code == 409
