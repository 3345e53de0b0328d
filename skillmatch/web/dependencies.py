"""Shared FastAPI dependencies - DB session, services and auth context."""

from collections.abc import Generator

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from skillmatch.services.entries import EntriesService
from skillmatch.services.profile_service import ProfileService


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_profile_service(request: Request) -> ProfileService:
    return request.app.state.profile_service


def get_entries_service(request: Request) -> EntriesService:
    return request.app.state.entries_service


def require_user_id(request: Request) -> int:
    """Verified user id for the request; 401 when the session carries none."""
    user_id = request.session.get("user_id")
    if user_id is None:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return int(user_id)
