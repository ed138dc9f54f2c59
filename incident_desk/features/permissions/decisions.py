"""
Allow/deny verdicts produced by the permission policy.

A Decision is a plain value. Routes turn a deny into an AccessDenied
exception through raise_for_decision(), which picks the status code from
the deny reason so callers never re-derive 401 vs 403.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, status

from incident_desk.utils import get_logger


log = get_logger(__name__)


class DenyReason(str, enum.Enum):
    """Why an action was refused."""
    AUTHENTICATION_REQUIRED = "authentication_required"
    NOT_A_TEAM_MEMBER = "not_a_team_member"
    INSUFFICIENT_ROLE = "insufficient_role"
    OWNERSHIP_REQUIRED = "ownership_required"
    SELF_PROTECTION = "self_protection"


STATUS_CODES: dict[DenyReason, int] = {
    DenyReason.AUTHENTICATION_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    DenyReason.NOT_A_TEAM_MEMBER: status.HTTP_403_FORBIDDEN,
    DenyReason.INSUFFICIENT_ROLE: status.HTTP_403_FORBIDDEN,
    DenyReason.OWNERSHIP_REQUIRED: status.HTTP_403_FORBIDDEN,
    DenyReason.SELF_PROTECTION: status.HTTP_403_FORBIDDEN,
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None
    message: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> "Decision":
        return cls(allowed=False, reason=reason, message=message)

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision.allow()


class AccessDenied(HTTPException):
    """HTTPException that remembers which DenyReason produced it."""

    def __init__(self, reason: DenyReason, message: str):
        headers = None
        if reason is DenyReason.AUTHENTICATION_REQUIRED:
            headers = {"WWW-Authenticate": "Bearer"}
        super().__init__(status_code=STATUS_CODES[reason], detail=message, headers=headers)
        self.reason = reason


def raise_for_decision(decision: Decision) -> None:
    """
    Raise AccessDenied when the decision is a deny, otherwise do nothing.

    Raises:
        AccessDenied: 401 for missing identity, 403 for every other reason
    """
    if decision.allowed:
        return
    log.debug(f"Access denied ({decision.reason.value}): {decision.message}")
    raise AccessDenied(decision.reason, decision.message or "Permission denied")
