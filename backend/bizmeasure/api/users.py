"""
users.py — User Record Endpoints (API Layer)

Purpose:
- POST /users → create a user record without logging in (admin tooling).
- GET /users/{user_id} → user details.
- GET /users/{user_id}/companies → companies owned by the user.

Reads are limited to the user themselves or an admin.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from bizmeasure.api.auth import RegisterRequest, UserOut, create_user
from bizmeasure.api.companies import CompanyOut
from bizmeasure.core.database import get_db
from bizmeasure.core.security import get_current_user
from bizmeasure.models import User

router = APIRouter(
    prefix="/users",
    tags=["users"]
)


def _load_visible_user(user_id: int, db: Session, current: User) -> User:
    if current.id != user_id and current.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to view this user")
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user_record(payload: RegisterRequest, db: Session = Depends(get_db)):
    return create_user(db, payload)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    return _load_visible_user(user_id, db, current)


@router.get("/{user_id}/companies", response_model=List[CompanyOut])
def get_user_companies(user_id: int, db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    return _load_visible_user(user_id, db, current).companies
