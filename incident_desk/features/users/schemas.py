"""
Pydantic schemas for user-related requests and responses.
"""
from pydantic import BaseModel, EmailStr, Field, field_validator

from incident_desk.core import config
from incident_desk.features.teams.models import TeamRole


def clean_name(v: str | None) -> str | None:
    """Strip a display name; a blank one is rejected."""
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("Name cannot be empty")
    return v


class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return clean_name(v)


class UserCreate(UserBase):
    """Schema for creating a new user."""
    password: str = Field(..., min_length=config.MIN_PASSWORD_LENGTH)


class UserUpdate(BaseModel):
    """Schema for updating user information. Omitted fields are left alone."""
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=config.MIN_PASSWORD_LENGTH)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        return clean_name(v)


class UserPublic(UserBase):
    """User information safe to return to any authenticated caller."""
    id: str

    model_config = {"from_attributes": True}


class UserTeam(BaseModel):
    """A team the user belongs to, with their role in it."""
    id: str
    name: str
    role: TeamRole
