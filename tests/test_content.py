"""Tests for books, discussions, reviews, the gallery and generic comments."""

import uuid

import pytest
from httpx import AsyncClient

from bookclub.db.models import Comment
from conftest import auth_headers


@pytest.mark.asyncio
async def test_create_and_read_book(client: AsyncClient, member):
    response = await client.post(
        "/books",
        json={"title": "  Pachinko ", "author": "Min Jin Lee", "category": "Fiction"},
        headers=auth_headers(member),
    )
    assert response.status_code == 201
    book = response.json()
    assert book["title"] == "Pachinko"
    assert book["status"] == "waiting"
    assert book["creator_name"] == "Mina"

    response = await client.get(f"/books/{book['id']}", headers=auth_headers(member))
    assert response.status_code == 200
    detail = response.json()
    assert detail["book"]["id"] == book["id"]
    assert detail["schedules"] == []


@pytest.mark.asyncio
async def test_book_requires_title_and_author(client: AsyncClient, member):
    response = await client.post(
        "/books", json={"title": "   ", "author": "A"}, headers=auth_headers(member)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_book_detail_links_reviews_and_discussions(client: AsyncClient, member, make_book):
    book = make_book()
    await client.post(
        "/reviews",
        json={"title": "Great", "content": "Loved it", "book_id": str(book.id), "rating": 5},
        headers=auth_headers(member),
    )
    await client.post(
        "/discussions",
        json={"title": "Themes", "content": "<p>Family</p>", "book_id": str(book.id)},
        headers=auth_headers(member),
    )

    response = await client.get(f"/books/{book.id}", headers=auth_headers(member))
    detail = response.json()
    assert [r["rating"] for r in detail["reviews"]] == [5]
    assert [d["title"] for d in detail["discussions"]] == ["Themes"]


@pytest.mark.asyncio
async def test_review_rating_bounds(client: AsyncClient, member, make_book):
    book = make_book()
    response = await client.post(
        "/reviews",
        json={"title": "T", "content": "C", "book_id": str(book.id), "rating": 6},
        headers=auth_headers(member),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_review_for_unknown_book(client: AsyncClient, member):
    response = await client.post(
        "/reviews",
        json={"title": "T", "content": "C", "book_id": str(uuid.uuid4()), "rating": 3},
        headers=auth_headers(member),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_gallery_flattens_photos(client: AsyncClient, member, other_member):
    await client.post(
        "/gallery",
        json={"title": "March", "photos": ["https://cdn/a.jpg", "https://cdn/b.jpg"]},
        headers=auth_headers(member),
    )
    await client.post(
        "/gallery",
        json={"title": "April", "photos": ["https://cdn/c.jpg"]},
        headers=auth_headers(other_member),
    )

    response = await client.get("/gallery", headers=auth_headers(member))
    data = response.json()
    assert len(data["recaps"]) == 2
    assert sorted(p["url"] for p in data["photos"]) == [
        "https://cdn/a.jpg", "https://cdn/b.jpg", "https://cdn/c.jpg",
    ]
    authors = {p["url"]: p["author"] for p in data["photos"]}
    assert authors["https://cdn/c.jpg"] == "Jun"


@pytest.mark.asyncio
async def test_recap_requires_photo(client: AsyncClient, member):
    response = await client.post(
        "/gallery", json={"title": "Empty", "photos": []}, headers=auth_headers(member)
    )
    assert response.status_code == 422

    response = await client.post(
        "/gallery", json={"title": "Blank", "photos": ["  "]}, headers=auth_headers(member)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_comments_on_discussion(client: AsyncClient, db, member, other_member):
    response = await client.post(
        "/discussions",
        json={"title": "Open thread", "content": "Thoughts?"},
        headers=auth_headers(member),
    )
    discussion_id = response.json()["id"]

    response = await client.post(
        "/comments",
        json={"commentable_type": "discussion", "commentable_id": discussion_id, "content": "Yes"},
        headers=auth_headers(other_member),
    )
    assert response.status_code == 201
    comment_id = response.json()["id"]

    response = await client.get(
        "/comments",
        params={"type": "discussion", "id": discussion_id},
        headers=auth_headers(member),
    )
    assert [c["content"] for c in response.json()] == ["Yes"]

    # Only the author (or an admin) may delete
    response = await client.delete(f"/comments/{comment_id}", headers=auth_headers(member))
    assert response.status_code == 403

    # Deleting the discussion removes its comments
    response = await client.delete(f"/discussions/{discussion_id}", headers=auth_headers(member))
    assert response.status_code == 204
    assert db.query(Comment).count() == 0


@pytest.mark.asyncio
async def test_comment_on_missing_target(client: AsyncClient, member):
    response = await client.post(
        "/comments",
        json={"commentable_type": "review", "commentable_id": str(uuid.uuid4()), "content": "?"},
        headers=auth_headers(member),
    )
    assert response.status_code == 404
