"""
Permission policy for incidents, team membership and platform administration.

Every function here is a pure decision over values the caller already
fetched: a team role (or None for non-members), the acting user id and,
where relevant, the incident. Nothing in this module touches the database.

Incident actions, first match wins:
    admin    -> everything
    manager  -> everything except DELETE
    user     -> CREATE, VIEW; EDIT_STATUS only on incidents assigned to them

Title and description edits are a separate rule: reporter OR elevated role.
"""
import enum
from typing import Iterable, Optional

from incident_desk.features.incidents.models import Incident
from incident_desk.features.permissions.decisions import ALLOW, Decision, DenyReason
from incident_desk.features.teams.models import TeamRole
from incident_desk.utils import get_logger


log = get_logger(__name__)


class IncidentAction(str, enum.Enum):
    CREATE = "create"
    VIEW = "view"
    EDIT_STATUS = "edit_status"
    ASSIGN = "assign"
    # No operation is wired to DELETE; kept so the matrix stays complete.
    DELETE = "delete"


class ManagementTier(str, enum.Enum):
    """Which endpoint family is managing a team's membership."""
    PLATFORM_MANAGER = "platform_manager"
    TEAM_ADMIN = "team_admin"


ELEVATED_ROLES = frozenset({TeamRole.MANAGER, TeamRole.ADMIN})

# Roles a team admin may hand out or touch
TEAM_ADMIN_ASSIGNABLE_ROLES = frozenset({TeamRole.USER, TeamRole.MANAGER})


# ============================================================================
# Incident permissions
# ============================================================================

def is_elevated_role(role: Optional[TeamRole]) -> bool:
    """True for manager and admin."""
    return role in ELEVATED_ROLES


def has_incident_permission(
    role: TeamRole,
    action: IncidentAction,
    incident: Optional[Incident] = None,
    user_id: Optional[str] = None
) -> bool:
    """
    Check a team role against the incident action matrix.

    Args:
        role: The caller's role in the incident's team
        action: Requested action
        incident: Target incident, needed for EDIT_STATUS by plain users
        user_id: Caller id, needed for EDIT_STATUS by plain users

    Returns:
        True if the action is permitted
    """
    if role == TeamRole.ADMIN:
        return True

    if role == TeamRole.MANAGER:
        return action != IncidentAction.DELETE

    if action in (IncidentAction.CREATE, IncidentAction.VIEW):
        return True

    if action == IncidentAction.EDIT_STATUS:
        if incident is None or user_id is None:
            return False
        return incident.assigned_to_user_id == user_id

    # ASSIGN and DELETE
    return False


def can_edit_incident_details(role: TeamRole, incident: Incident, user_id: str) -> bool:
    """Title/description: the original reporter or any elevated role."""
    return incident.reported_by_user_id == user_id or is_elevated_role(role)


def _membership_denial(user_id: Optional[str], role: Optional[TeamRole]) -> Optional[Decision]:
    if user_id is None:
        return Decision.deny(DenyReason.AUTHENTICATION_REQUIRED, "Authentication required")
    if role is None:
        return Decision.deny(DenyReason.NOT_A_TEAM_MEMBER, "You are not a member of this team")
    return None


def authorize_incident_action(
    user_id: Optional[str],
    role: Optional[TeamRole],
    action: IncidentAction,
    incident: Optional[Incident] = None
) -> Decision:
    """
    Full verdict for an incident action, including the deny reason.

    A plain user refused EDIT_STATUS gets OWNERSHIP_REQUIRED, since
    becoming the assignee is what would grant it.
    """
    denial = _membership_denial(user_id, role)
    if denial is not None:
        return denial

    if has_incident_permission(role, action, incident, user_id):
        return ALLOW

    log.debug(f"Denied {action.value} to user {user_id} with role {role.value}")
    if action == IncidentAction.EDIT_STATUS:
        return Decision.deny(
            DenyReason.OWNERSHIP_REQUIRED,
            "You do not have permission to edit the status"
        )
    if action == IncidentAction.ASSIGN:
        return Decision.deny(
            DenyReason.INSUFFICIENT_ROLE,
            "You do not have permission to assign incidents"
        )
    return Decision.deny(
        DenyReason.INSUFFICIENT_ROLE,
        f"You do not have permission to {action.value.replace('_', ' ')} incidents"
    )


def authorize_detail_edit(
    user_id: Optional[str],
    role: Optional[TeamRole],
    incident: Incident,
    field: str = "title"
) -> Decision:
    """Verdict for editing an incident's title or description."""
    denial = _membership_denial(user_id, role)
    if denial is not None:
        return denial

    if can_edit_incident_details(role, incident, user_id):
        return ALLOW

    return Decision.deny(
        DenyReason.OWNERSHIP_REQUIRED,
        f"You do not have permission to edit the {field}"
    )


# ============================================================================
# Guard primitives
# ============================================================================

def check_team_role(
    user_id: Optional[str],
    role: Optional[TeamRole],
    allowed_roles: Iterable[TeamRole]
) -> Decision:
    """
    Require one of allowed_roles in a team.

    Distinguishes a missing identity, a non-member and a member whose role
    is not in the allowed set.
    """
    denial = _membership_denial(user_id, role)
    if denial is not None:
        return denial
    if role not in set(allowed_roles):
        return Decision.deny(DenyReason.INSUFFICIENT_ROLE, "Insufficient permissions in this team")
    return ALLOW


def check_team_membership(user_id: Optional[str], role: Optional[TeamRole]) -> Decision:
    """Require membership in a team, any role."""
    return check_team_role(user_id, role, TeamRole)


def check_platform_manager(user_id: Optional[str], is_platform_manager: bool) -> Decision:
    if user_id is None:
        return Decision.deny(DenyReason.AUTHENTICATION_REQUIRED, "Authentication required")
    if not is_platform_manager:
        return Decision.deny(DenyReason.INSUFFICIENT_ROLE, "Platform manager access required")
    return ALLOW


# ============================================================================
# Team membership management
# ============================================================================

def authorize_member_add(tier: ManagementTier, new_role: TeamRole) -> Decision:
    """Platform managers may add any role; team admins only user or manager."""
    if tier is ManagementTier.PLATFORM_MANAGER:
        return ALLOW
    if new_role not in TEAM_ADMIN_ASSIGNABLE_ROLES:
        return Decision.deny(
            DenyReason.INSUFFICIENT_ROLE,
            "Team admins can only add users or managers"
        )
    return ALLOW


def authorize_member_role_change(
    tier: ManagementTier,
    actor_id: str,
    target_id: str,
    current_role: TeamRole,
    new_role: TeamRole
) -> Decision:
    """
    Change a member's role.

    Team admins cannot change their own role, cannot touch another admin,
    and can only set user or manager. Platform managers are unrestricted.
    """
    if tier is ManagementTier.PLATFORM_MANAGER:
        return ALLOW
    if actor_id == target_id:
        return Decision.deny(DenyReason.SELF_PROTECTION, "Cannot change your own role")
    if current_role == TeamRole.ADMIN:
        return Decision.deny(DenyReason.SELF_PROTECTION, "Cannot change another admin's role")
    if new_role not in TEAM_ADMIN_ASSIGNABLE_ROLES:
        return Decision.deny(
            DenyReason.INSUFFICIENT_ROLE,
            "Team admins can only set roles to user or manager"
        )
    return ALLOW


def authorize_member_removal(
    tier: ManagementTier,
    actor_id: str,
    target_id: str,
    current_role: TeamRole
) -> Decision:
    """Team admins cannot remove themselves or another admin."""
    if tier is ManagementTier.PLATFORM_MANAGER:
        return ALLOW
    if actor_id == target_id:
        return Decision.deny(DenyReason.SELF_PROTECTION, "Cannot remove yourself from the team")
    if current_role == TeamRole.ADMIN:
        return Decision.deny(
            DenyReason.SELF_PROTECTION,
            "Cannot remove another admin from the team"
        )
    return ALLOW


# ============================================================================
# Platform administration
# ============================================================================

def authorize_platform_manager_removal(actor_id: str, target_id: str) -> Decision:
    if actor_id == target_id:
        return Decision.deny(
            DenyReason.SELF_PROTECTION,
            "Cannot remove yourself as platform manager"
        )
    return ALLOW


def authorize_user_deletion(actor_id: str, target_id: str) -> Decision:
    if actor_id == target_id:
        return Decision.deny(DenyReason.SELF_PROTECTION, "Cannot delete yourself")
    return ALLOW
