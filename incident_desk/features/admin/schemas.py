"""
Pydantic schemas for the platform administration routes.
"""
from pydantic import BaseModel, ConfigDict, Field


class PlatformStatus(BaseModel):
    is_platform_manager: bool


class PlatformManagerAdd(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class PlatformManagerResponse(BaseModel):
    user_id: str
    name: str
    email: str
