"""
Pydantic schemas for registration and login.
"""
from pydantic import BaseModel, EmailStr, Field, field_validator

from incident_desk.core import config
from incident_desk.features.users.schemas import UserPublic, clean_name


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=config.MIN_PASSWORD_LENGTH)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return clean_name(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    message: str
    user: UserPublic
    # Also set as an httpOnly cookie; returned for clients using bearer auth
    token: str
