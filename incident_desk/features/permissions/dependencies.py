"""
Route guards combining the role resolver with the permission policy.

Implements:
- require_team_role(*roles): member of the path's team with one of roles
- require_team_membership(): member of the path's team, any role
- require_platform_manager: platform-wide administrative rights

Each guard performs one lookup, asks the policy for a Decision and raises
AccessDenied on a deny. The resolved TeamContext is handed to the route so
it does not repeat the lookup.
"""
from dataclasses import dataclass
from typing import Annotated
from fastapi import Depends

from incident_desk.features.permissions.decisions import raise_for_decision
from incident_desk.features.permissions.policy import (
    check_platform_manager,
    check_team_membership,
    check_team_role,
)
from incident_desk.features.teams.models import TeamRole
from incident_desk.features.teams.resolver import RoleResolver, get_role_resolver
from incident_desk.features.users.dependencies import get_current_user_id
from incident_desk.utils import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class TeamContext:
    """The caller as seen from one team."""
    user_id: str
    team_id: str
    role: TeamRole


def require_team_role(*allowed_roles: TeamRole):
    """
    FastAPI dependency factory requiring one of allowed_roles in the team
    named by the `team_id` path parameter.

    Usage:
        @router.post("/{team_id}/members")
        async def add_member(
            ctx: TeamContext = Depends(require_team_role(TeamRole.ADMIN))
        ):
            ...

    Raises:
        AccessDenied: 401 without identity, 403 for non-members or
            members with a role outside allowed_roles
    """
    async def team_role_dependency(
        team_id: str,
        user_id: Annotated[str, Depends(get_current_user_id)],
        resolver: Annotated[RoleResolver, Depends(get_role_resolver)]
    ) -> TeamContext:
        role = await resolver.role_of(user_id, team_id)
        decision = check_team_role(user_id, role, allowed_roles)
        if not decision:
            log.debug(f"User {user_id} denied in team {team_id}: {decision.reason.value}")
        raise_for_decision(decision)
        return TeamContext(user_id=user_id, team_id=team_id, role=role)

    return team_role_dependency


def require_team_membership():
    """FastAPI dependency factory requiring membership in the path's team."""
    async def team_membership_dependency(
        team_id: str,
        user_id: Annotated[str, Depends(get_current_user_id)],
        resolver: Annotated[RoleResolver, Depends(get_role_resolver)]
    ) -> TeamContext:
        role = await resolver.role_of(user_id, team_id)
        decision = check_team_membership(user_id, role)
        if not decision:
            log.debug(f"User {user_id} denied in team {team_id}: {decision.reason.value}")
        raise_for_decision(decision)
        return TeamContext(user_id=user_id, team_id=team_id, role=role)

    return team_membership_dependency


async def require_platform_manager(
    user_id: Annotated[str, Depends(get_current_user_id)],
    resolver: Annotated[RoleResolver, Depends(get_role_resolver)]
) -> str:
    """
    Require platform manager status.

    Returns:
        The platform manager's user id
    """
    is_manager = await resolver.is_platform_manager(user_id)
    raise_for_decision(check_platform_manager(user_id, is_manager))
    return user_id
