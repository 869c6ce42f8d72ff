"""
Admin hub authentication: password hashing, JWT issue/verify and the
FastAPI dependency that guards hub routes.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from fastapi import Header, HTTPException, status

from resolution_hub.core.config import settings
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)

_password_hasher = PasswordHasher(time_cost=3, memory_cost=65536, parallelism=4, hash_len=32, salt_len=16)


def hash_password(password: str) -> str:
    """Argon2id hash; the salt and parameters are embedded in the returned string."""
    return _password_hasher.hash(password)


def verify_password(password: str, stored_hash: str) -> bool:
    if not password or not stored_hash:
        return False
    try:
        return _password_hasher.verify(stored_hash, password)
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError):
        logger.warning("⚠️ AUTH: Stored password hash could not be verified")
        return False


def create_access_token(user_id: int, username: str, expires_in: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "username": username,
        "iat": now,
        "exp": now + (expires_in or timedelta(hours=settings.JWT_EXPIRATION_HOURS)),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> Optional[dict[str, Any]]:
    """Decode a hub token. Returns ``{userId, username}`` or None if invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("🔒 AUTH: Token expired")
        return None
    except jwt.InvalidTokenError:
        logger.warning("⚠️ AUTH: Invalid token presented")
        return None
    return {"userId": payload.get("userId"), "username": payload.get("username")}


def get_current_user(authorization: Optional[str] = Header(default=None)) -> dict[str, Any]:
    """FastAPI dependency: the verified hub user, or 401."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    user = verify_token(authorization[len("Bearer "):])
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user
