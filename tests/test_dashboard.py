"""Tests for the dashboard read."""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from bookclub.db.enums import BookStatus
from bookclub.services import meeting_service
from conftest import auth_headers

TODAY = date(2025, 3, 1)


def test_empty_club(db):
    dashboard = meeting_service.get_dashboard(db, today=TODAY)

    assert dashboard.next_meeting is None
    assert dashboard.featured_book is None
    assert dashboard.featured_presenter is None


def test_next_meeting_book_is_featured(db, make_schedule, make_book):
    book = make_book("Next Read")
    make_schedule(meeting_date=date(2025, 2, 10), title="Past")
    make_schedule(meeting_date=date(2025, 4, 10), title="Later")
    make_schedule(meeting_date=date(2025, 3, 10), selected_book_id=book.id)

    dashboard = meeting_service.get_dashboard(db, today=TODAY)

    assert dashboard.next_meeting.meeting_date == date(2025, 3, 10)
    assert dashboard.featured_book.id == book.id
    assert dashboard.featured_presenter == "Presenter"


def test_falls_back_to_latest_selected_book(db, make_schedule, make_book):
    older = make_book("Older")
    newer = make_book("Newer")
    for book in (older, newer):
        book.status = BookStatus.SELECTED.value
    older.created_at = newer.created_at - timedelta(days=1)
    db.commit()
    make_schedule(meeting_date=date(2025, 3, 10))

    dashboard = meeting_service.get_dashboard(db, today=TODAY)

    assert dashboard.next_meeting.meeting_date == date(2025, 3, 10)
    assert dashboard.featured_book.id == newer.id
    assert dashboard.featured_presenter is None


@pytest.mark.asyncio
async def test_dashboard_endpoint(client: AsyncClient, visitor, make_schedule):
    upcoming = make_schedule(meeting_date=meeting_service.club_today() + timedelta(days=7))

    response = await client.get("/dashboard", headers=auth_headers(visitor))

    assert response.status_code == 200
    assert response.json()["next_meeting"]["id"] == str(upcoming.id)
