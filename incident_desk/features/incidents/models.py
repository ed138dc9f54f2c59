"""
Incident model.
"""
import enum
from sqlalchemy import String, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from incident_desk.core.database.base import Base, TimestampMixin, generate_ulid, ulid_column


class IncidentStatus(str, enum.Enum):
    """Incident status. Any status may be set from any other."""
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    ESCALATED = "escalated"
    RESOLVED = "resolved"


class Incident(Base, TimestampMixin):
    """
    Incident reported within a team.

    reported_by_user_id is fixed at creation. assigned_to_user_id is nullable
    and only changes through the ASSIGN permission.
    """
    __tablename__ = "incidents"

    id: Mapped[str] = ulid_column(primary_key=True, default=generate_ulid)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[IncidentStatus] = mapped_column(
        SQLEnum(IncidentStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        default=IncidentStatus.PENDING,
        nullable=False,
        index=True
    )

    team_id: Mapped[str] = ulid_column(
        ForeignKey("teams.id"),
        nullable=False,
        index=True
    )
    reported_by_user_id: Mapped[str] = ulid_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    assigned_to_user_id: Mapped[str | None] = ulid_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True
    )

    def __repr__(self) -> str:
        return f"<Incident(id={self.id}, team_id={self.team_id}, status={self.status})>"
