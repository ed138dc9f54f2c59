"""
Platform administration routes.

Every route except /status requires platform manager status. Membership
changes here bypass team roles entirely; the only guards are the
self-protection rules that keep a manager from locking themselves out.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from incident_desk.core.database.engine import get_db
from incident_desk.features.admin.schemas import (
    PlatformManagerAdd,
    PlatformManagerResponse,
    PlatformStatus,
)
from incident_desk.features.incidents.models import Incident
from incident_desk.features.permissions.decisions import raise_for_decision
from incident_desk.features.permissions.dependencies import require_platform_manager
from incident_desk.features.permissions.policy import (
    ManagementTier,
    authorize_platform_manager_removal,
    authorize_user_deletion,
)
from incident_desk.features.teams import service as team_service
from incident_desk.features.teams.models import PlatformManager, Team, TeamMembership
from incident_desk.features.teams.resolver import RoleResolver, get_role_resolver
from incident_desk.features.teams.schemas import (
    MemberAdd,
    MemberResponse,
    MemberRoleUpdate,
    TeamCreate,
    TeamResponse,
    TeamUpdate,
)
from incident_desk.features.users.auth import hash_password
from incident_desk.features.users.dependencies import get_current_user_id
from incident_desk.features.users.models import User
from incident_desk.features.users.schemas import UserCreate, UserPublic, UserUpdate
from incident_desk.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["admin"])

PlatformManagerId = Annotated[str, Depends(require_platform_manager)]


@router.get("/status", response_model=PlatformStatus)
async def get_platform_status(
    user_id: Annotated[str, Depends(get_current_user_id)],
    resolver: Annotated[RoleResolver, Depends(get_role_resolver)]
):
    """Whether the current user is a platform manager."""
    return PlatformStatus(is_platform_manager=await resolver.is_platform_manager(user_id))


async def _get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


async def _ensure_email_free(db: AsyncSession, email: str, exclude_user_id: str | None = None) -> None:
    result = await db.execute(select(User).where(User.email == email))
    existing = result.scalar_one_or_none()
    if existing is not None and existing.id != exclude_user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already in use"
        )


# ============================================================================
# Team management
# ============================================================================

@router.get("/teams", response_model=list[TeamResponse])
async def list_teams(
    _manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get all teams."""
    result = await db.execute(select(Team).order_by(Team.name))
    return result.scalars().all()


@router.post("/teams", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    team_data: TeamCreate,
    manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a new team."""
    team = Team(name=team_data.name)
    db.add(team)
    await db.commit()
    await db.refresh(team)

    log.info(f"Team {team.id} created by platform manager {manager_id}")
    return team


@router.put("/teams/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: str,
    team_data: TeamUpdate,
    _manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Rename a team."""
    team = await team_service.get_team_or_404(db, team_id)
    team.name = team_data.name
    await db.commit()
    await db.refresh(team)
    return team


@router.delete("/teams/{team_id}")
async def delete_team(
    team_id: str,
    manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Delete a team that has no members and no incidents."""
    team = await team_service.get_team_or_404(db, team_id)

    members = await db.scalar(
        select(func.count()).select_from(TeamMembership).where(TeamMembership.team_id == team_id)
    )
    incidents = await db.scalar(
        select(func.count()).select_from(Incident).where(Incident.team_id == team_id)
    )
    if members or incidents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete team with members or incidents"
        )

    await db.delete(team)
    await db.commit()

    log.info(f"Team {team_id} deleted by platform manager {manager_id}")
    return {"message": "Team deleted"}


# ============================================================================
# Team membership management
# ============================================================================

@router.get("/teams/{team_id}/members", response_model=list[MemberResponse])
async def get_team_members(
    team_id: str,
    _manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get all members of any team."""
    await team_service.get_team_or_404(db, team_id)
    return await team_service.list_members(db, team_id)


@router.post("/teams/{team_id}/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def add_team_member(
    team_id: str,
    add_data: MemberAdd,
    _manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Add a user to any team with any role."""
    await team_service.get_team_or_404(db, team_id)
    membership = await team_service.add_member(
        db, ManagementTier.PLATFORM_MANAGER, team_id, add_data.user_id, add_data.role
    )
    return await team_service.describe_member(db, membership)


@router.put("/teams/{team_id}/members/{user_id}", response_model=MemberResponse)
async def update_team_member_role(
    team_id: str,
    user_id: str,
    update_data: MemberRoleUpdate,
    manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Change any member's role to any role."""
    membership = await team_service.change_member_role(
        db, ManagementTier.PLATFORM_MANAGER, manager_id, team_id, user_id, update_data.role
    )
    return await team_service.describe_member(db, membership)


@router.delete("/teams/{team_id}/members/{user_id}")
async def remove_team_member(
    team_id: str,
    user_id: str,
    manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Remove any member from any team."""
    await team_service.remove_member(db, ManagementTier.PLATFORM_MANAGER, manager_id, team_id, user_id)
    return {"message": "User removed from team"}


# ============================================================================
# Platform manager management
# ============================================================================

@router.get("/managers", response_model=list[PlatformManagerResponse])
async def list_platform_managers(
    _manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get all platform managers."""
    result = await db.execute(
        select(PlatformManager.user_id, User.name, User.email)
        .join(User, User.id == PlatformManager.user_id)
        .order_by(User.name)
    )
    return [
        PlatformManagerResponse(user_id=row.user_id, name=row.name, email=row.email)
        for row in result.all()
    ]


@router.post("/managers", status_code=status.HTTP_201_CREATED)
async def add_platform_manager(
    add_data: PlatformManagerAdd,
    manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)],
    resolver: Annotated[RoleResolver, Depends(get_role_resolver)]
):
    """Grant platform manager status to a user."""
    await _get_user_or_404(db, add_data.user_id)

    if await resolver.is_platform_manager(add_data.user_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is already a platform manager"
        )

    db.add(PlatformManager(user_id=add_data.user_id))
    await db.commit()

    log.info(f"User {add_data.user_id} made platform manager by {manager_id}")
    return {"message": "Platform manager added"}


@router.delete("/managers/{user_id}")
async def remove_platform_manager(
    user_id: str,
    manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Revoke platform manager status. Managers cannot revoke their own."""
    raise_for_decision(authorize_platform_manager_removal(manager_id, user_id))

    manager = await db.get(PlatformManager, user_id)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Platform manager not found"
        )

    await db.delete(manager)
    await db.commit()

    log.info(f"User {user_id} removed from platform managers by {manager_id}")
    return {"message": "Platform manager removed"}


# ============================================================================
# User management
# ============================================================================

@router.get("/users", response_model=list[UserPublic])
async def list_users(
    _manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get all users."""
    result = await db.execute(select(User).order_by(User.name))
    return result.scalars().all()


@router.post("/users", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a user account."""
    email = user_data.email.strip()
    await _ensure_email_free(db, email)

    user = User(
        name=user_data.name.strip(),
        email=email,
        pwd_hash=hash_password(user_data.password),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    log.info(f"User {user.id} created by platform manager {manager_id}")
    return user


@router.put("/users/{user_id}", response_model=UserPublic)
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    _manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update a user's name, email or password."""
    user = await _get_user_or_404(db, user_id)

    if user_data.name is None and user_data.email is None and user_data.password is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update"
        )

    if user_data.email is not None and user_data.email != user.email:
        await _ensure_email_free(db, user_data.email, exclude_user_id=user_id)
        user.email = user_data.email
    if user_data.name is not None:
        user.name = user_data.name.strip()
    if user_data.password is not None:
        user.pwd_hash = hash_password(user_data.password)

    await db.commit()
    await db.refresh(user)
    return user


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    manager_id: PlatformManagerId,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Delete a user account. Managers cannot delete their own account."""
    raise_for_decision(authorize_user_deletion(manager_id, user_id))

    user = await _get_user_or_404(db, user_id)

    memberships = await db.scalar(
        select(func.count()).select_from(TeamMembership).where(TeamMembership.user_id == user_id)
    )
    incidents = await db.scalar(
        select(func.count()).select_from(Incident).where(
            or_(Incident.reported_by_user_id == user_id, Incident.assigned_to_user_id == user_id)
        )
    )
    if memberships or incidents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete user with team memberships or incidents"
        )

    manager = await db.get(PlatformManager, user_id)
    if manager is not None:
        await db.delete(manager)
    await db.delete(user)
    await db.commit()

    log.info(f"User {user_id} deleted by platform manager {manager_id}")
    return {"message": "User deleted"}
