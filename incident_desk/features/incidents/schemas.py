"""
Pydantic schemas for incidents.
"""
from pydantic import BaseModel, ConfigDict, Field

from incident_desk.features.incidents.models import IncidentStatus


class IncidentCreate(BaseModel):
    title: str = Field(..., max_length=255)
    description: str | None = None


class IncidentUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are considered;
    an explicit null assigned_to_user_id unassigns the incident.
    """
    title: str | None = Field(None, max_length=255)
    description: str | None = None
    status: IncidentStatus | None = None
    assigned_to_user_id: str | None = None


class IncidentResponse(BaseModel):
    id: str
    title: str
    description: str | None = None
    status: IncidentStatus
    team_id: str
    reported_by_user_id: str
    assigned_to_user_id: str | None = None

    model_config = ConfigDict(from_attributes=True)


class IncidentUpdateResult(BaseModel):
    message: str
    incident: IncidentResponse
    errors: list[str] | None = None
