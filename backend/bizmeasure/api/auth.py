"""
auth.py — Authentication Endpoints (API Layer)

Purpose:
- Register users, log them in and return JWT access tokens.
- Report the currently authenticated user.
- Both `/register` + `/login` and the `/auth/signup` + `/auth/login` aliases
  used by older front-end builds are served.

This file should be thin — hashing and token encoding live in core/security.py.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bizmeasure.core.database import get_db
from bizmeasure.core.logging import get_logger
from bizmeasure.core.security import (
    create_access_token,
    get_current_user,
    hash_password,
    verify_password,
)
from bizmeasure.models import User

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])

# -----------------------------------------------------------------------------
# Request / Response Schemas
# -----------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    """
    Schema for registration POST.
    - `username`: unique login name
    - `email`: unique contact / login email
    - `password`: raw password, hashed before storage
    - `full_name`: display name (defaults to the username)
    """
    username: str = Field(..., min_length=3, max_length=64)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=128)
    full_name: Optional[str] = None


class LoginRequest(BaseModel):
    """
    Schema for login POST.
    - `username`: username or email
    - `password`: raw password supplied by the user
    """
    username: str
    password: str


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    role: str
    created_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """
    Response schema when issuing JWT access tokens.
    - `access_token`: encoded JWT string
    - `token_type`: 'bearer' for Authorization headers
    - `company_id`: the user's first company, if onboarded
    """
    access_token: str
    token_type: str = "bearer"
    user: UserOut
    company_id: Optional[int] = None


class CurrentUserResponse(BaseModel):
    user: UserOut
    company_id: Optional[int] = None


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _find_existing_user(db: Session, email: str, username: str) -> Optional[User]:
    return db.execute(
        select(User).where(or_(User.email == email, User.username == username))
    ).scalars().first()


def create_user(db: Session, payload: RegisterRequest, role: str = "user") -> User:
    """
    Insert a user; 400 when the email or username is already taken.

    The unique constraints decide concurrent registrations that both pass
    the lookup.
    """
    email = payload.email.strip().lower()
    username = payload.username.strip()

    existing = _find_existing_user(db, email, username)
    if existing is not None:
        field = "Email" if existing.email == email else "Username"
        raise HTTPException(status_code=400, detail=f"{field} already registered")

    user = User(
        username=username,
        email=email,
        hashed_password=hash_password(payload.password),
        full_name=(payload.full_name or username).strip(),
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Registration lost a race on a unique email or username")
        raise HTTPException(status_code=400, detail="Email or username already registered")
    db.refresh(user)
    logger.info(f"Registered user id={user.id}")
    return user


def _first_company_id(user: User) -> Optional[int]:
    return user.companies[0].id if user.companies else None


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token({"sub": str(user.id)}),
        user=UserOut.model_validate(user),
        company_id=_first_company_id(user),
    )


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@router.post("/auth/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """
    POST /register

    Create an account and log it in immediately.
    """
    user = create_user(db, payload)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
@router.post("/auth/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """
    POST /login

    High-Level Flow:
    1. Look up user by username or email.
    2. Verify provided password matches stored hash.
    3. If valid → issue JWT access token.
    4. If invalid → 401 Unauthorized (same message for unknown user and wrong password).
    """
    identifier = payload.username.strip()
    user = db.execute(
        select(User).where(or_(User.username == identifier, User.email == identifier.lower()))
    ).scalars().first()

    if user is None or not verify_password(payload.password, user.hashed_password):
        logger.warning("Failed login attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return _token_response(user)


@router.post("/logout")
def logout():
    """
    POST /logout

    Stateless JWT means logout is client-side only (delete the token in the UI).
    """
    return {"message": "Logout successful (client should delete stored token)"}


@router.get("/user", response_model=CurrentUserResponse)
def read_current_user(user: User = Depends(get_current_user)):
    """
    GET /user

    The authenticated user and their first company id.
    """
    return CurrentUserResponse(user=UserOut.model_validate(user), company_id=_first_company_id(user))
