"""
Role resolution: a user's role in a team and their platform manager flag.

Both lookups are single-row reads; absence is a normal answer, not an error.
"""
from typing import Annotated, Optional
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from incident_desk.core.database.engine import get_db
from incident_desk.features.teams.models import PlatformManager, TeamMembership, TeamRole


class RoleResolver:
    """Reads team roles and platform manager status through one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_membership(self, user_id: str, team_id: str) -> Optional[TeamMembership]:
        result = await self.db.execute(
            select(TeamMembership).where(
                TeamMembership.user_id == user_id,
                TeamMembership.team_id == team_id
            )
        )
        return result.scalar_one_or_none()

    async def role_of(self, user_id: str, team_id: str) -> Optional[TeamRole]:
        """The user's role in the team, or None if they are not a member."""
        membership = await self.get_membership(user_id, team_id)
        return membership.role if membership else None

    async def is_platform_manager(self, user_id: str) -> bool:
        """Platform manager status. Never implied by any team role."""
        result = await self.db.execute(
            select(PlatformManager.user_id).where(PlatformManager.user_id == user_id)
        )
        return result.first() is not None


async def get_role_resolver(db: Annotated[AsyncSession, Depends(get_db)]) -> RoleResolver:
    """
    Dependency providing the RoleResolver.

    Override in tests with app.dependency_overrides[get_role_resolver].
    """
    return RoleResolver(db)
