"""Bearer token helpers: JWT issue/decode and the current-user dependency."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from jwt.exceptions import PyJWTError
from fastapi import Request

from app.core.config import JWT_SECRET, JWT_ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from app.core.errors import AuthenticationRequired
from app.models.household import User

log = logging.getLogger("security")


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Timing-safe check; a user without a stored hash never verifies."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError as e:
        log.warning(f"Password verification error: {e}")
        return False


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Returns the token payload, or None if it is invalid or expired."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except PyJWTError as e:
        log.info(f"Invalid token: {e}")
        return None


def bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None


async def get_current_user(request: Request) -> User:
    """
    FastAPI dependency: resolves the bearer token to an existing user.
    Raises AuthenticationRequired when the token is missing, invalid,
    or points at a user that no longer exists.
    """
    token = bearer_token(request)
    if not token:
        raise AuthenticationRequired()

    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        raise AuthenticationRequired("Invalid or expired token")

    user = await User.get_or_none(id=payload["sub"])
    if not user:
        raise AuthenticationRequired("Token user no longer exists")
    return user
