"""
Registration, login and logout.

Successful register/login issue a session token both as an httpOnly cookie
and in the response body.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from incident_desk.core import config
from incident_desk.core.database.engine import get_db
from incident_desk.features.auth.schemas import AuthResponse, LoginRequest, RegisterRequest
from incident_desk.features.users.auth import create_access_token, hash_password, verify_password
from incident_desk.features.users.models import User
from incident_desk.features.users.schemas import UserPublic
from incident_desk.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["auth"])
limiter = Limiter(key_func=get_remote_address, enabled=config.RATE_LIMIT_ENABLED)


def _set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        config.TOKEN_COOKIE_NAME,
        token,
        max_age=config.JWT_EXPIRES_MINUTES * 60,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="strict",
        path="/",
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(config.AUTH_RATE_LIMIT)
async def register(
    request: Request,
    response: Response,
    register_data: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a new user account and sign it in."""
    result = await db.execute(select(User).where(User.email == register_data.email))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )

    user = User(
        name=register_data.name.strip(),
        email=register_data.email,
        pwd_hash=hash_password(register_data.password),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    token = create_access_token(user.id)
    _set_token_cookie(response, token)

    log.info(f"User {user.id} registered")
    return AuthResponse(
        message="Registration successful",
        user=UserPublic.model_validate(user),
        token=token,
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit(config.AUTH_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    login_data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Authenticate with email and password."""
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(login_data.password, user.pwd_hash):
        log.info("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    token = create_access_token(user.id)
    _set_token_cookie(response, token)

    return AuthResponse(
        message="Login successful",
        user=UserPublic.model_validate(user),
        token=token,
    )


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(
        config.TOKEN_COOKIE_NAME,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="strict",
        path="/",
    )
    return {"message": "Logout successful"}
