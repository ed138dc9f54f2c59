"""
Team membership routes for team members and team admins.

Platform managers manage memberships through /admin instead.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from incident_desk.core.database.engine import get_db
from incident_desk.features.permissions.dependencies import (
    TeamContext,
    require_team_membership,
    require_team_role,
)
from incident_desk.features.permissions.policy import ManagementTier
from incident_desk.features.teams import service
from incident_desk.features.teams.models import TeamRole
from incident_desk.features.teams.resolver import RoleResolver, get_role_resolver
from incident_desk.features.teams.schemas import (
    MemberAdd,
    MemberResponse,
    MemberRoleUpdate,
    MyRoleResponse,
)
from incident_desk.features.users.dependencies import get_current_user_id


router = APIRouter(tags=["teams"])


@router.get("/{team_id}/members", response_model=list[MemberResponse])
async def get_team_members(
    ctx: Annotated[TeamContext, Depends(require_team_membership())],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get all members of a team (any team member)."""
    return await service.list_members(db, ctx.team_id)


@router.post("/{team_id}/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def add_team_member(
    add_data: MemberAdd,
    ctx: Annotated[TeamContext, Depends(require_team_role(TeamRole.ADMIN))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Add a user to the team as user or manager (team admin only)."""
    membership = await service.add_member(
        db, ManagementTier.TEAM_ADMIN, ctx.team_id, add_data.user_id, add_data.role
    )
    return await service.describe_member(db, membership)


@router.put("/{team_id}/members/{user_id}", response_model=MemberResponse)
async def update_team_member_role(
    user_id: str,
    update_data: MemberRoleUpdate,
    ctx: Annotated[TeamContext, Depends(require_team_role(TeamRole.ADMIN))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Change a member's role (team admin only, never another admin)."""
    membership = await service.change_member_role(
        db, ManagementTier.TEAM_ADMIN, ctx.user_id, ctx.team_id, user_id, update_data.role
    )
    return await service.describe_member(db, membership)


@router.delete("/{team_id}/members/{user_id}")
async def remove_team_member(
    user_id: str,
    ctx: Annotated[TeamContext, Depends(require_team_role(TeamRole.ADMIN))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Remove a member from the team (team admin only, never another admin)."""
    await service.remove_member(db, ManagementTier.TEAM_ADMIN, ctx.user_id, ctx.team_id, user_id)
    return {"message": "User removed from team"}


@router.get("/{team_id}/my-role", response_model=MyRoleResponse)
async def get_my_role(
    team_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    resolver: Annotated[RoleResolver, Depends(get_role_resolver)]
):
    """Get the current user's role in a team."""
    role = await resolver.role_of(user_id, team_id)
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not a member of this team"
        )
    return MyRoleResponse(team_id=team_id, role=role)
