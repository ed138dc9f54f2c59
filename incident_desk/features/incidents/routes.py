"""
Incident routes, scoped to a team.

Every route requires membership in the path's team. Field-level rights on
PATCH come from the incident state rules.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from incident_desk.core.database.engine import get_db
from incident_desk.features.incidents.models import Incident
from incident_desk.features.incidents.schemas import (
    IncidentCreate,
    IncidentResponse,
    IncidentUpdate,
    IncidentUpdateResult,
)
from incident_desk.features.incidents.state import (
    IncidentValidationError,
    apply_update_plan,
    new_incident_fields,
    plan_incident_update,
)
from incident_desk.features.permissions.decisions import raise_for_decision
from incident_desk.features.permissions.dependencies import TeamContext, require_team_membership
from incident_desk.features.permissions.policy import IncidentAction, authorize_incident_action
from incident_desk.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["incidents"])


async def get_team_incident(db: AsyncSession, team_id: str, incident_id: str) -> Incident:
    """Load an incident, treating one from another team as missing."""
    result = await db.execute(select(Incident).where(Incident.id == incident_id))
    incident = result.scalar_one_or_none()

    if incident is None or incident.team_id != team_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Incident not found"
        )
    return incident


@router.post("/{team_id}/incidents", response_model=IncidentResponse, status_code=status.HTTP_201_CREATED)
async def create_incident(
    incident_data: IncidentCreate,
    ctx: Annotated[TeamContext, Depends(require_team_membership())],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Report a new incident (any team member)."""
    raise_for_decision(authorize_incident_action(ctx.user_id, ctx.role, IncidentAction.CREATE))

    try:
        fields = new_incident_fields(
            incident_data.title, incident_data.description, ctx.team_id, ctx.user_id
        )
    except IncidentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    incident = Incident(**fields)
    db.add(incident)
    await db.commit()
    await db.refresh(incident)

    log.info(f"Incident {incident.id} reported in team {ctx.team_id} by {ctx.user_id}")
    return incident


@router.get("/{team_id}/incidents", response_model=list[IncidentResponse])
async def list_incidents(
    ctx: Annotated[TeamContext, Depends(require_team_membership())],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """List all incidents for a team, newest first (any team member)."""
    raise_for_decision(authorize_incident_action(ctx.user_id, ctx.role, IncidentAction.VIEW))

    result = await db.execute(
        select(Incident)
        .where(Incident.team_id == ctx.team_id)
        .order_by(Incident.id.desc())
    )
    return result.scalars().all()


@router.get("/{team_id}/incidents/{incident_id}", response_model=IncidentResponse)
async def get_incident(
    incident_id: str,
    ctx: Annotated[TeamContext, Depends(require_team_membership())],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get a single incident (any team member)."""
    incident = await get_team_incident(db, ctx.team_id, incident_id)
    raise_for_decision(
        authorize_incident_action(ctx.user_id, ctx.role, IncidentAction.VIEW, incident)
    )
    return incident


@router.patch("/{team_id}/incidents/{incident_id}", response_model=IncidentUpdateResult)
async def update_incident(
    incident_id: str,
    update_data: IncidentUpdate,
    ctx: Annotated[TeamContext, Depends(require_team_membership())],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Update an incident.

    Permissions:
    - title, description: reporter OR manager/admin
    - status: assignee OR manager/admin
    - assigned_to_user_id: manager/admin only

    Permitted fields are saved even when others are refused; refused fields
    are listed in `errors`.
    """
    incident = await get_team_incident(db, ctx.team_id, incident_id)

    requested = update_data.model_dump(include=update_data.model_fields_set)
    plan = plan_incident_update(incident, ctx.user_id, ctx.role, requested)

    if not plan.updated and plan.errors:
        status_code = status.HTTP_403_FORBIDDEN if plan.denials else status.HTTP_400_BAD_REQUEST
        log.debug(f"Incident {incident_id} update by {ctx.user_id} refused: {plan.errors}")
        return JSONResponse(
            status_code=status_code,
            content={
                "detail": "Permission denied" if plan.denials else "Invalid update",
                "errors": plan.errors,
            }
        )

    if plan.updated:
        apply_update_plan(incident, plan)
        await db.commit()
        await db.refresh(incident)
        log.info(f"Incident {incident_id} updated by {ctx.user_id}: {sorted(plan.changes)}")

    return IncidentUpdateResult(
        message="Incident updated successfully" if plan.updated else "No changes made",
        incident=IncidentResponse.model_validate(incident),
        errors=plan.errors or None,
    )
