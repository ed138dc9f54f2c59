"""
Pydantic schemas for teams and memberships.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator

from incident_desk.features.teams.models import TeamRole


class TeamBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Team name is required")
        return v


class TeamCreate(TeamBase):
    pass


class TeamUpdate(TeamBase):
    pass


class TeamResponse(TeamBase):
    id: str

    model_config = ConfigDict(from_attributes=True)


class MemberAdd(BaseModel):
    """Add an existing user to a team."""
    user_id: str = Field(..., alias="userId", min_length=1)
    role: TeamRole = TeamRole.USER

    model_config = ConfigDict(populate_by_name=True)


class MemberRoleUpdate(BaseModel):
    role: TeamRole


class MemberResponse(BaseModel):
    """A team member with their role."""
    id: str
    name: str
    email: str
    role: TeamRole


class MyRoleResponse(BaseModel):
    team_id: str
    role: TeamRole
