"""Authentication routes - signup, login, logout."""

import re

import bcrypt
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from skillmatch.models import User
from skillmatch.services.profile_service import create_profile

from .dependencies import get_db

router = APIRouter(prefix="/api/auth")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USER_TYPES = ("job_seeker", "employer")


def _hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def _verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


def _error(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


@router.post("/signup")
async def signup(request: Request, db: Session = Depends(get_db)):
    form = await request.form()

    first_name = form.get("first_name", "").strip()
    last_name = form.get("last_name", "").strip()
    email = form.get("email", "").strip().lower()
    password = form.get("password", "")
    confirm = form.get("confirm_password", "")
    user_type = form.get("user_type", "job_seeker").strip()

    # Validation
    if not email or not password:
        return _error("Email and password are required.")
    if not EMAIL_RE.match(email):
        return _error("Please provide a valid email address.")
    if password != confirm:
        return _error("Passwords do not match.")
    if len(password) < 8:
        return _error("Password must be at least 8 characters.")
    if user_type not in USER_TYPES:
        return _error("User type must be either job_seeker or employer.")

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        return _error("An account with this email already exists.")

    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=_hash_password(password),
        user_type=user_type,
    )
    db.add(user)
    db.flush()

    # Every account starts with an empty profile scoring 0
    create_profile(db, user.id)
    db.commit()

    request.session["user_id"] = user.id
    return JSONResponse({"success": True, "data": {"id": user.id, "email": user.email}}, status_code=201)


@router.post("/login")
async def login(request: Request, db: Session = Depends(get_db)):
    form = await request.form()

    email = form.get("email", "").strip().lower()
    password = form.get("password", "")

    user = db.query(User).filter(User.email == email).first()
    if not user or not user.is_active or not _verify_password(password, user.password_hash):
        return _error("Invalid email or password.", status_code=401)

    request.session["user_id"] = user.id
    return {"success": True, "data": {"id": user.id, "email": user.email}}


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"success": True, "data": {}}
