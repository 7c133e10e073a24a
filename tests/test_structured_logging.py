"""Tests for structured logging helpers."""

import logging

import pytest
from httpx import AsyncClient

from bookclub.core.structured_logging import build_log_context


def test_build_log_context_includes_only_provided_fields():
    context = build_log_context(
        user_id="user-1",
        request_id="req-1",
        route="/meetings/{schedule_id}",
        method="GET",
        status_code=200,
        duration_ms=12.345,
    )

    assert context == {
        "user_id": "user-1",
        "request_id": "req-1",
        "route": "/meetings/{schedule_id}",
        "method": "GET",
        "status_code": 200,
        "duration_ms": 12.3,
    }


def test_build_log_context_ignores_empty_fields():
    context = build_log_context(
        user_id="",
        route=None,
        request_id="req-1",
    )

    assert context == {"request_id": "req-1"}


@pytest.mark.asyncio
async def test_request_log_line_carries_context(client: AsyncClient, caplog):
    with caplog.at_level(logging.INFO, logger="bookclub.request"):
        await client.get("/health", headers={"X-Request-ID": "req-log"})

    records = [r for r in caplog.records if r.name == "bookclub.request"]
    assert records
    record = records[-1]
    assert record.request_id == "req-log"
    assert record.route == "/health"
    assert record.method == "GET"
    assert record.status_code == 200
