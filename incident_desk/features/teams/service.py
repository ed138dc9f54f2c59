"""
Membership operations shared by the team-admin and platform-manager routes.

Both tiers run the same lookups and writes; only the policy tier differs.
"""
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from incident_desk.features.permissions.decisions import raise_for_decision
from incident_desk.features.permissions.policy import (
    ManagementTier,
    authorize_member_add,
    authorize_member_removal,
    authorize_member_role_change,
)
from incident_desk.features.teams.models import Team, TeamMembership, TeamRole
from incident_desk.features.teams.resolver import RoleResolver
from incident_desk.features.users.models import User
from incident_desk.utils import get_logger


log = get_logger(__name__)


async def get_team_or_404(db: AsyncSession, team_id: str) -> Team:
    result = await db.execute(select(Team).where(Team.id == team_id))
    team = result.scalar_one_or_none()
    if team is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Team not found"
        )
    return team


async def describe_member(db: AsyncSession, membership: TeamMembership) -> dict:
    user = await db.get(User, membership.user_id)
    return {"id": user.id, "name": user.name, "email": user.email, "role": membership.role}


async def list_members(db: AsyncSession, team_id: str) -> list[dict]:
    result = await db.execute(
        select(User.id, User.name, User.email, TeamMembership.role)
        .join(TeamMembership, TeamMembership.user_id == User.id)
        .where(TeamMembership.team_id == team_id)
        .order_by(User.name)
    )
    return [
        {"id": row.id, "name": row.name, "email": row.email, "role": row.role}
        for row in result.all()
    ]


async def add_member(
    db: AsyncSession,
    tier: ManagementTier,
    team_id: str,
    user_id: str,
    role: TeamRole
) -> TeamMembership:
    """
    Add a user to a team.

    Raises:
        AccessDenied: if the tier may not grant this role
        HTTPException: 404 if the user does not exist, 400 if already a member
    """
    raise_for_decision(authorize_member_add(tier, role))

    result = await db.execute(select(User).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    resolver = RoleResolver(db)
    if await resolver.get_membership(user_id, team_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is already a team member"
        )

    membership = TeamMembership(user_id=user_id, team_id=team_id, role=role)
    db.add(membership)
    await db.commit()
    await db.refresh(membership)

    log.info(f"Added user {user_id} to team {team_id} as {role.value} ({tier.value})")
    return membership


async def change_member_role(
    db: AsyncSession,
    tier: ManagementTier,
    actor_id: str,
    team_id: str,
    user_id: str,
    role: TeamRole
) -> TeamMembership:
    """
    Update a member's role in place.

    Raises:
        HTTPException: 404 if the user is not a member
        AccessDenied: if the tier may not make this change
    """
    membership = await RoleResolver(db).get_membership(user_id, team_id)
    if membership is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User is not a member of this team"
        )

    raise_for_decision(
        authorize_member_role_change(tier, actor_id, user_id, membership.role, role)
    )

    previous = membership.role
    membership.role = role
    await db.commit()
    await db.refresh(membership)

    log.info(
        f"Changed role of user {user_id} in team {team_id} "
        f"from {previous.value} to {role.value} ({tier.value})"
    )
    return membership


async def remove_member(
    db: AsyncSession,
    tier: ManagementTier,
    actor_id: str,
    team_id: str,
    user_id: str
) -> None:
    """
    Remove a member from a team.

    Raises:
        HTTPException: 404 if the user is not a member
        AccessDenied: if the tier may not remove this member
    """
    membership = await RoleResolver(db).get_membership(user_id, team_id)
    if membership is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User is not a member of this team"
        )

    raise_for_decision(authorize_member_removal(tier, actor_id, user_id, membership.role))

    await db.delete(membership)
    await db.commit()

    log.info(f"Removed user {user_id} from team {team_id} ({tier.value})")
