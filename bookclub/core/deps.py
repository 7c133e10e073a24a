"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from bookclub.core.policies import Action, can
from bookclub.core.security import decode_session_token
from bookclub.db.session import SessionLocal


# Cookie and header names
COOKIE_NAME = "bookclub_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _get_token(request: Request) -> str | None:
    """Session token from the cookie, else from a Bearer header."""
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return None


def get_current_member(
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Get the member behind the identity token.

    Validates:
    - Token exists
    - JWT is valid, unexpired and meant for this audience
    - Subject is present

    First sight of a subject provisions a 'pending' member.

    Raises:
        HTTPException 401: Authentication failed
    """
    # Import here to avoid circular imports
    from bookclub.services import member_service

    token = _get_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_session_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid session")

    subject = payload.get("sub")
    email = payload.get("email")
    if not subject or not email:
        raise HTTPException(status_code=401, detail="Invalid session")

    metadata = payload.get("user_metadata") or {}
    try:
        return member_service.ensure_member(
            db,
            user_id=subject,
            email=email,
            name=metadata.get("name"),
        )
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e))


def get_current_session(
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Get full session context: user_id, role, email, name.

    This is the PRIMARY auth dependency for most endpoints.

    Raises:
        HTTPException 401: Not authenticated
        HTTPException 403: Unknown role
    """
    from bookclub.db.enums import Role
    from bookclub.schemas.auth import UserSession

    member = get_current_member(request, db)

    # Validate role is a known enum value - return 403 not 500
    if not Role.has_value(member.role):
        raise HTTPException(
            status_code=403,
            detail=f"Unknown role '{member.role}'. Contact an administrator."
        )

    return UserSession(
        user_id=member.id,
        role=Role(member.role),
        email=member.email,
        name=member.name,
    )


def require_action(action: Action):
    """
    Dependency factory for resource-independent authorization.

    Usage:
        @router.get("/admin/stats")
        def stats(session: UserSession = Depends(require_action(Action.MANAGE_MEMBERS))): ...
    """
    def dependency(request: Request, db: Session = Depends(get_db)):
        session = get_current_session(request, db)
        if not can(session, action):
            if session.role.value == "pending":
                detail = "Account is awaiting approval"
            else:
                detail = f"Role '{session.role.value}' not authorized for this action"
            raise HTTPException(status_code=403, detail=detail)
        return session
    return dependency


def require_csrf_header(request: Request) -> None:
    """
    Verify CSRF header on mutations.

    Apply to state-changing endpoints (POST, PUT, PATCH, DELETE).

    Raises:
        HTTPException 403: Missing or invalid CSRF header
    """
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'"
        )


def ensure_allowed(session, action: Action, resource: object | None = None) -> None:
    """Raise 403 unless the session may perform ``action`` on ``resource``."""
    if not can(session, action, resource):
        raise HTTPException(status_code=403, detail="Not authorized for this action")
