"""Dashboard router - the club home page."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookclub.core.deps import get_db, require_action
from bookclub.core.policies import Action
from bookclub.schemas.auth import UserSession
from bookclub.schemas.meeting import Dashboard
from bookclub.services import meeting_service

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard", response_model=Dashboard)
def get_dashboard(
    session: UserSession = Depends(require_action(Action.READ)),
    db: Session = Depends(get_db),
):
    return meeting_service.get_dashboard(db)
