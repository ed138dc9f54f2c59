"""
User feature routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from incident_desk.core.database.engine import get_db
from incident_desk.features.teams.models import Team, TeamMembership
from incident_desk.features.users.dependencies import get_current_user_id
from incident_desk.features.users.models import User
from incident_desk.features.users.schemas import UserPublic, UserTeam


router = APIRouter(tags=["users"])


@router.get("/", response_model=list[UserPublic])
async def list_users(
    _user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """List all users (authenticated users only)."""
    result = await db.execute(select(User).order_by(User.name))
    return result.scalars().all()


@router.get("/teams", response_model=list[UserTeam])
async def get_user_teams(
    current_user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: str | None = Query(default=None, alias="userId")
):
    """Get the teams the current user belongs to, with their role in each."""
    if user_id is not None and user_id != current_user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only view your own teams"
        )

    result = await db.execute(
        select(Team.id, Team.name, TeamMembership.role)
        .join(TeamMembership, TeamMembership.team_id == Team.id)
        .where(TeamMembership.user_id == current_user_id)
        .order_by(Team.name)
    )
    return [UserTeam(id=row.id, name=row.name, role=row.role) for row in result.all()]
