"""
Dashboard routes: the current user's open work and per-team status counts.
"""
from typing import Annotated
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from incident_desk.core.database.engine import get_db
from incident_desk.features.incidents.models import Incident, IncidentStatus
from incident_desk.features.incidents.schemas import IncidentResponse
from incident_desk.features.teams.models import Team, TeamMembership
from incident_desk.features.users.dependencies import get_current_user_id


router = APIRouter(tags=["dashboard"])


class TeamIncidentStats(BaseModel):
    team_id: str
    team_name: str
    pending: int = 0
    under_review: int = 0
    escalated: int = 0
    resolved: int = 0


@router.get("/my-incidents", response_model=list[IncidentResponse])
async def get_my_incidents(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Unresolved incidents reported by the current user."""
    result = await db.execute(
        select(Incident)
        .where(
            Incident.reported_by_user_id == user_id,
            Incident.status != IncidentStatus.RESOLVED
        )
        .order_by(Incident.id.desc())
    )
    return result.scalars().all()


@router.get("/assigned-incidents", response_model=list[IncidentResponse])
async def get_assigned_incidents(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Unresolved incidents assigned to the current user."""
    result = await db.execute(
        select(Incident)
        .where(
            Incident.assigned_to_user_id == user_id,
            Incident.status != IncidentStatus.RESOLVED
        )
        .order_by(Incident.id.desc())
    )
    return result.scalars().all()


@router.get("/team-stats", response_model=list[TeamIncidentStats])
async def get_team_stats(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Incident counts per status for every team the current user belongs to."""
    counts = [
        func.coalesce(func.sum(case((Incident.status == s, 1), else_=0)), 0).label(s.value)
        for s in IncidentStatus
    ]
    result = await db.execute(
        select(Team.id.label("team_id"), Team.name.label("team_name"), *counts)
        .join(TeamMembership, and_(TeamMembership.team_id == Team.id, TeamMembership.user_id == user_id))
        .outerjoin(Incident, Incident.team_id == Team.id)
        .group_by(Team.id, Team.name)
        .order_by(Team.name)
    )
    return [TeamIncidentStats(**row._mapping) for row in result.all()]
