"""
User model.
"""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from incident_desk.core.database.base import Base, TimestampMixin, generate_ulid, ulid_column


class User(Base, TimestampMixin):
    """
    User account.

    Email is unique across the platform. Platform manager status lives in
    its own table and is never implied by any team role.
    """
    __tablename__ = "users"

    id: Mapped[str] = ulid_column(primary_key=True, default=generate_ulid)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # bcrypt hash, never serialized
    pwd_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"
