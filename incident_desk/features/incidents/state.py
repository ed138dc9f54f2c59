"""
Rules for how an incident's mutable fields may change.

Status has no transition graph: any status may be set from any other, as
long as the caller holds EDIT_STATUS. Each requested field is judged on its
own, so a single PATCH can apply some fields and refuse others.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from incident_desk.features.incidents.models import Incident, IncidentStatus
from incident_desk.features.permissions.decisions import Decision
from incident_desk.features.permissions.policy import (
    IncidentAction,
    authorize_detail_edit,
    authorize_incident_action,
)
from incident_desk.features.teams.models import TeamRole


class IncidentValidationError(ValueError):
    """Raised for field values that can never be stored (e.g. an empty title)."""


# Fields a PATCH may touch, in the order they are evaluated
UPDATABLE_FIELDS = ("title", "description", "status", "assigned_to_user_id")


@dataclass
class IncidentUpdatePlan:
    """Outcome of evaluating a requested update against the caller's rights."""
    changes: Dict[str, Any] = field(default_factory=dict)
    denials: List[Decision] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)

    @property
    def updated(self) -> bool:
        return bool(self.changes)

    @property
    def errors(self) -> List[str]:
        return [d.message for d in self.denials] + self.validation_errors


def clean_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise IncidentValidationError("Title cannot be empty")
    return title


def clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    return description.strip() or None


def new_incident_fields(
    title: str,
    description: Optional[str],
    team_id: str,
    reporter_id: str
) -> Dict[str, Any]:
    """
    Column values for a freshly reported incident.

    New incidents always start pending and unassigned; the reporter is
    fixed here and never changes afterwards.

    Raises:
        IncidentValidationError: if the title is blank
    """
    return {
        "title": clean_title(title),
        "description": clean_description(description),
        "status": IncidentStatus.PENDING,
        "team_id": team_id,
        "reported_by_user_id": reporter_id,
        "assigned_to_user_id": None,
    }


def plan_incident_update(
    incident: Incident,
    user_id: str,
    role: Optional[TeamRole],
    requested: Dict[str, Any]
) -> IncidentUpdatePlan:
    """
    Decide which of the requested field changes the caller may make.

    Args:
        incident: Current incident state
        user_id: Caller id
        role: Caller's role in the incident's team
        requested: Only the fields the client actually sent. A None
            assigned_to_user_id means "unassign"; a None title or
            description is ignored.

    Returns:
        IncidentUpdatePlan with accepted changes, denials and validation errors
    """
    plan = IncidentUpdatePlan()

    for name in ("title", "description"):
        if name not in requested or requested[name] is None:
            continue
        decision = authorize_detail_edit(user_id, role, incident, field=name)
        if not decision:
            plan.denials.append(decision)
            continue
        if name == "title":
            try:
                plan.changes["title"] = clean_title(requested["title"])
            except IncidentValidationError as e:
                plan.validation_errors.append(str(e))
        else:
            plan.changes["description"] = clean_description(requested["description"])

    if requested.get("status") is not None:
        try:
            new_status = IncidentStatus(requested["status"])
        except ValueError:
            valid = ", ".join(s.value for s in IncidentStatus)
            plan.validation_errors.append(f"Invalid status. Must be one of: {valid}")
        else:
            decision = authorize_incident_action(user_id, role, IncidentAction.EDIT_STATUS, incident)
            if decision:
                plan.changes["status"] = new_status
            else:
                plan.denials.append(decision)

    if "assigned_to_user_id" in requested:
        decision = authorize_incident_action(user_id, role, IncidentAction.ASSIGN, incident)
        if decision:
            plan.changes["assigned_to_user_id"] = requested["assigned_to_user_id"]
        else:
            plan.denials.append(decision)

    return plan


def apply_update_plan(incident: Incident, plan: IncidentUpdatePlan) -> Incident:
    """Copy accepted changes onto the incident. The caller persists it."""
    for name, value in plan.changes.items():
        setattr(incident, name, value)
    return incident
