"""Tests for the free-form board."""

import pytest
from httpx import AsyncClient

from bookclub.db.models import BoardComment
from bookclub.services.content_service import sanitize_html
from conftest import auth_headers


def test_sanitize_html_strips_scripts():
    cleaned = sanitize_html('<p>Hi<script>alert(1)</script> <a href="https://x.y" onclick="x()">link</a></p>')
    assert "<script>" not in cleaned
    assert "onclick" not in cleaned
    assert "<p>" in cleaned
    assert 'href="https://x.y"' in cleaned


@pytest.mark.asyncio
async def test_post_comment_and_list(client: AsyncClient, member, other_member):
    response = await client.post(
        "/board",
        json={"title": "Hello", "content": "<p>First<script>x</script></p>"},
        headers=auth_headers(member),
    )
    assert response.status_code == 201
    post = response.json()
    assert "<script>" not in post["content"]
    assert post["author_name"] == "Mina"

    response = await client.post(
        f"/board/{post['id']}/comments",
        json={"content": "welcome"},
        headers=auth_headers(other_member),
    )
    assert response.status_code == 201

    response = await client.get("/board", headers=auth_headers(member))
    assert response.json()[0]["comment_count"] == 1

    response = await client.get(f"/board/{post['id']}", headers=auth_headers(member))
    detail = response.json()
    assert [c["author_name"] for c in detail["comments"]] == ["Jun"]


@pytest.mark.asyncio
async def test_only_author_or_admin_deletes(client: AsyncClient, db, admin, member, other_member):
    response = await client.post(
        "/board", json={"title": "T", "content": "C"}, headers=auth_headers(member)
    )
    post_id = response.json()["id"]
    await client.post(
        f"/board/{post_id}/comments", json={"content": "c"}, headers=auth_headers(other_member)
    )

    response = await client.delete(f"/board/{post_id}", headers=auth_headers(other_member))
    assert response.status_code == 403

    response = await client.delete(f"/board/{post_id}", headers=auth_headers(admin))
    assert response.status_code == 204
    assert db.query(BoardComment).count() == 0

    response = await client.get(f"/board/{post_id}", headers=auth_headers(member))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_empty_post_is_rejected(client: AsyncClient, member):
    response = await client.post(
        "/board", json={"title": "T", "content": "<script>only</script>"}, headers=auth_headers(member)
    )
    assert response.status_code == 400
