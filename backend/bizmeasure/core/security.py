"""
security.py — Authentication Utilities (Password Hashing & JWT Encoding)

Purpose:
- Hash & verify passwords (never store raw passwords).
- Issue and validate JWT access tokens for authentication.
- Extract the current user from the `Authorization: Bearer <token>` header.

Key Constraints:
- Access tokens only (no refresh tokens).
- Authentication is stateless — logout just means deleting the token client-side.

This module does NOT:
- Define API routes → that lives in bizmeasure/api/auth.py
- Query the database directly (except via injected deps)
"""

import datetime
from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from bizmeasure.core.config import settings
from bizmeasure.core.database import get_db
from bizmeasure.models.user import User


# -----------------------------------------------------------------------------
# Password Hashing
# -----------------------------------------------------------------------------

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(raw_password: str) -> str:
    """
    Hash a plaintext password using bcrypt.
    """
    return pwd_context.hash(raw_password)

def verify_password(raw_password: str, hashed_password: str) -> bool:
    """
    Verify that a raw password matches its hashed stored version.
    """
    return pwd_context.verify(raw_password, hashed_password)


# -----------------------------------------------------------------------------
# JWT Token Handling
# -----------------------------------------------------------------------------

def create_access_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    """
    Create a JWT access token with expiration.

    Expected payload format:
        data = {"sub": str(user_id)}

    Returns:
        Encoded JWT string.
    """
    to_encode = data.copy()
    lifetime = expires_minutes if expires_minutes is not None else settings.JWT_EXPIRE_MINUTES
    expire_at = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(minutes=lifetime)
    to_encode.update({"exp": expire_at})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT token.
    Returns the payload dict if valid, None if invalid or expired.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


# -----------------------------------------------------------------------------
# Current User Dependency
# -----------------------------------------------------------------------------

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/login",
    auto_error=False,
)

_NOT_AUTHENTICATED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Not authenticated",
    headers={"WWW-Authenticate": "Bearer"},
)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Extract and return the authenticated user from a JWT token.

    Flow:
    - Decode token.
    - Validate 'sub' (user_id).
    - Lookup user in DB.
    - Return user object, or 401 at any failed step.
    """
    if not token:
        raise _NOT_AUTHENTICATED

    payload = decode_token(token)
    if not payload or "sub" not in payload:
        raise _NOT_AUTHENTICATED

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise _NOT_AUTHENTICATED

    user = db.get(User, user_id)
    if user is None:
        raise _NOT_AUTHENTICATED
    return user
