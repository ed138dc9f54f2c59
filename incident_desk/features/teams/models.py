"""
Team, membership and platform manager models.

A user holds at most one role per team. Platform managers are a separate,
platform-wide set and are independent of every team membership.
"""
import enum
from sqlalchemy import String, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from incident_desk.core.database.base import Base, TimestampMixin, generate_ulid, ulid_column


class TeamRole(str, enum.Enum):
    """A member's standing within one team."""
    USER = "user"
    MANAGER = "manager"
    ADMIN = "admin"


class Team(Base, TimestampMixin):
    __tablename__ = "teams"

    id: Mapped[str] = ulid_column(primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name={self.name!r})>"


class TeamMembership(Base, TimestampMixin):
    """
    (user, team) pair carrying exactly one TeamRole.

    Created when a user is added to a team, deleted when removed; the role is
    updated in place.
    """
    __tablename__ = "team_memberships"
    __table_args__ = (
        UniqueConstraint("user_id", "team_id", name="uq_team_membership_user_team"),
    )

    id: Mapped[str] = ulid_column(primary_key=True, default=generate_ulid)
    user_id: Mapped[str] = ulid_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    team_id: Mapped[str] = ulid_column(
        ForeignKey("teams.id"),
        nullable=False,
        index=True
    )
    role: Mapped[TeamRole] = mapped_column(
        SQLEnum(TeamRole, values_callable=lambda roles: [r.value for r in roles]),
        default=TeamRole.USER,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<TeamMembership(user_id={self.user_id}, team_id={self.team_id}, role={self.role})>"


class PlatformManager(Base, TimestampMixin):
    """Users with platform-wide administrative rights."""
    __tablename__ = "platform_managers"

    user_id: Mapped[str] = ulid_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )

    def __repr__(self) -> str:
        return f"<PlatformManager(user_id={self.user_id})>"
