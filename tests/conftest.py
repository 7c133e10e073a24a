"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema rebuilt for each test
- Member factories for every role
- Session token minting for authenticated requests
- HTTPX AsyncClient wired to the app with get_db overridden
"""
import os
import uuid
from datetime import date
from typing import AsyncGenerator, Callable, Generator

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["TESTING"] = "1"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/bookclub-test-uploads")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookclub.main import app
from bookclub.core.deps import CSRF_HEADER, CSRF_HEADER_VALUE, get_db
from bookclub.core.security import create_session_token
from bookclub.db.base import Base
from bookclub.db.enums import Role
from bookclub.db.models import Book, Member, Schedule
from bookclub.schemas.auth import UserSession


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh in-memory database per test.

    StaticPool keeps one shared connection so the threadpool that runs
    sync endpoints sees the same database as the test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()

    yield session

    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


# =============================================================================
# Member Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def make_member(db: Session) -> Callable[..., Member]:
    """Factory for members with a given role."""
    def _make(role: Role = Role.MEMBER, name: str | None = None) -> Member:
        suffix = uuid.uuid4().hex[:8]
        member = Member(
            id=uuid.uuid4(),
            email=f"{role.value}-{suffix}@example.com",
            name=name or f"{role.value.title()} {suffix}",
            role=role.value,
        )
        db.add(member)
        db.commit()
        db.refresh(member)
        return member
    return _make


@pytest.fixture
def admin(make_member) -> Member:
    return make_member(Role.ADMIN, name="Admin")


@pytest.fixture
def member(make_member) -> Member:
    return make_member(Role.MEMBER, name="Mina")


@pytest.fixture
def other_member(make_member) -> Member:
    return make_member(Role.MEMBER, name="Jun")


@pytest.fixture
def presenter(make_member) -> Member:
    return make_member(Role.MEMBER, name="Presenter")


@pytest.fixture
def visitor(make_member) -> Member:
    return make_member(Role.VISITOR, name="Visitor")


@pytest.fixture
def pending(make_member) -> Member:
    return make_member(Role.PENDING, name="Newcomer")


def session_for(member: Member) -> UserSession:
    """UserSession for calling services and policies directly."""
    return UserSession(
        user_id=member.id, role=Role(member.role), email=member.email, name=member.name
    )


# =============================================================================
# Catalog / Schedule Fixtures
# =============================================================================

@pytest.fixture
def make_book(db: Session, member: Member) -> Callable[..., Book]:
    def _make(title: str = "Book", author: str = "Author") -> Book:
        book = Book(title=title, author=author, created_by=member.id)
        db.add(book)
        db.commit()
        db.refresh(book)
        return book
    return _make


@pytest.fixture
def make_schedule(db: Session, admin: Member, presenter: Member) -> Callable[..., Schedule]:
    """Confirmed schedule presented by ``presenter`` (bypasses the vote flow)."""
    def _make(meeting_date: date = date(2025, 3, 10), **fields) -> Schedule:
        schedule = Schedule(
            title=fields.pop("title", "March Meeting"),
            meeting_date=meeting_date,
            presenter_id=fields.pop("presenter_id", presenter.id),
            created_by=admin.id,
            **fields,
        )
        db.add(schedule)
        db.commit()
        db.refresh(schedule)
        return schedule
    return _make


# =============================================================================
# Auth Helpers
# =============================================================================

def auth_headers(member: Member, csrf: bool = True) -> dict[str, str]:
    """Bearer token (as minted by the identity service) plus CSRF header."""
    token = create_session_token(user_id=member.id, email=member.email, name=member.name)
    headers = {"Authorization": f"Bearer {token}"}
    if csrf:
        headers[CSRF_HEADER] = CSRF_HEADER_VALUE
    return headers


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient bound to the test database.

    Pass ``headers=auth_headers(member)`` per request to act as a member.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
