"""
Password hashing and session token helpers.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from incident_desk.core import config
from incident_desk.features.permissions.decisions import AccessDenied, DenyReason


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, pwd_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), pwd_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(user_id: str, expires_minutes: Optional[int] = None) -> str:
    """
    Issue a signed session token carrying the user id.

    Args:
        user_id: User ULID
        expires_minutes: Lifetime override, defaults to JWT_EXPIRES_MINUTES

    Returns:
        Encoded JWT
    """
    lifetime = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    payload = {
        "userId": user_id,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_jwt_token(token: str) -> dict:
    """
    Verify a session token and return its payload.

    Raises:
        AccessDenied: 401 if the token is invalid or expired
    """
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AccessDenied(DenyReason.AUTHENTICATION_REQUIRED, "Token has expired")
    except jwt.InvalidTokenError:
        raise AccessDenied(DenyReason.AUTHENTICATION_REQUIRED, "Invalid token")
