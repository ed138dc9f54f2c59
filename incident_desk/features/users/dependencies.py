"""
FastAPI dependencies for authentication.
"""
from typing import Annotated, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from incident_desk.core import config
from incident_desk.features.permissions.decisions import AccessDenied, DenyReason
from incident_desk.features.users.auth import verify_jwt_token


security = HTTPBearer(auto_error=False)


def _authentication_required() -> AccessDenied:
    return AccessDenied(DenyReason.AUTHENTICATION_REQUIRED, "Authentication required")


async def get_current_user_id(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> str:
    """
    Resolve the caller's user id from the session token.

    The Authorization bearer header wins over the httpOnly cookie.

    Usage:
        @router.get("/me")
        async def whoami(user_id: str = Depends(get_current_user_id)):
            return {"id": user_id}
    """
    token = credentials.credentials if credentials else request.cookies.get(config.TOKEN_COOKIE_NAME)
    if not token:
        raise _authentication_required()

    payload = verify_jwt_token(token)
    user_id = payload.get("userId")
    if not user_id:
        raise _authentication_required()
    return str(user_id)
