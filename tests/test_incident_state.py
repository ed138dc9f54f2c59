"""
Incident state rules: creation defaults and per-field update planning.
"""
import itertools

import pytest

from incident_desk.features.incidents.models import Incident, IncidentStatus
from incident_desk.features.incidents.state import (
    IncidentValidationError,
    apply_update_plan,
    clean_description,
    new_incident_fields,
    plan_incident_update,
)
from incident_desk.features.permissions.decisions import DenyReason
from incident_desk.features.teams.models import TeamRole


def _incident(status=IncidentStatus.PENDING, reporter="reporter", assignee=None):
    return Incident(
        id="inc-1",
        title="Build broken",
        description="main is red",
        status=status,
        team_id="team-1",
        reported_by_user_id=reporter,
        assigned_to_user_id=assignee,
    )


class TestNewIncident:
    def test_starts_pending_and_unassigned(self):
        fields = new_incident_fields("  Build broken ", "", "team-1", "reporter")
        assert fields["status"] is IncidentStatus.PENDING
        assert fields["assigned_to_user_id"] is None
        assert fields["reported_by_user_id"] == "reporter"
        assert fields["title"] == "Build broken"
        assert fields["description"] is None

    def test_blank_title_rejected(self):
        with pytest.raises(IncidentValidationError, match="Title cannot be empty"):
            new_incident_fields("   ", None, "team-1", "reporter")

    def test_description_trimmed(self):
        assert clean_description("  details  ") == "details"
        assert clean_description(None) is None


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "current,target",
        list(itertools.product(IncidentStatus, IncidentStatus)),
    )
    def test_any_status_reachable_by_manager(self, current, target):
        incident = _incident(status=current)
        plan = plan_incident_update(incident, "mgr", TeamRole.MANAGER, {"status": target.value})
        assert plan.changes == {"status": target}
        assert plan.errors == []

    def test_resolved_can_reopen(self):
        incident = _incident(status=IncidentStatus.RESOLVED, assignee="u-1")
        plan = plan_incident_update(incident, "u-1", TeamRole.USER, {"status": "pending"})
        assert plan.changes["status"] is IncidentStatus.PENDING

    def test_invalid_status(self):
        plan = plan_incident_update(_incident(), "mgr", TeamRole.MANAGER, {"status": "closed"})
        assert not plan.updated
        assert plan.validation_errors == [
            "Invalid status. Must be one of: pending, under_review, escalated, resolved"
        ]


class TestPlanUpdate:
    def test_partial_update_keeps_allowed_fields(self):
        incident = _incident(reporter="u-1")
        plan = plan_incident_update(
            incident, "u-1", TeamRole.USER,
            {"title": "New title", "assigned_to_user_id": "u-1"},
        )
        assert plan.changes == {"title": "New title"}
        assert [d.reason for d in plan.denials] == [DenyReason.INSUFFICIENT_ROLE]
        assert plan.errors == ["You do not have permission to assign incidents"]

    def test_user_cannot_edit_someone_elses_details(self):
        plan = plan_incident_update(_incident(), "u-1", TeamRole.USER, {"description": "x"})
        assert not plan.updated
        assert plan.errors == ["You do not have permission to edit the description"]

    def test_user_status_requires_assignment(self):
        plan = plan_incident_update(_incident(reporter="u-1"), "u-1", TeamRole.USER, {"status": "escalated"})
        assert plan.denials[0].reason is DenyReason.OWNERSHIP_REQUIRED

    def test_blank_title_is_validation_error(self):
        plan = plan_incident_update(_incident(reporter="u-1"), "u-1", TeamRole.USER, {"title": "  "})
        assert not plan.updated
        assert plan.denials == []
        assert plan.validation_errors == ["Title cannot be empty"]

    def test_null_title_ignored(self):
        plan = plan_incident_update(_incident(), "adm", TeamRole.ADMIN, {"title": None})
        assert not plan.updated
        assert plan.errors == []

    def test_explicit_null_unassigns(self):
        incident = _incident(assignee="u-1")
        plan = plan_incident_update(incident, "mgr", TeamRole.MANAGER, {"assigned_to_user_id": None})
        assert plan.changes == {"assigned_to_user_id": None}
        apply_update_plan(incident, plan)
        assert incident.assigned_to_user_id is None

    def test_empty_request(self):
        plan = plan_incident_update(_incident(), "adm", TeamRole.ADMIN, {})
        assert not plan.updated
        assert plan.errors == []

    def test_non_member_gets_membership_denials(self):
        plan = plan_incident_update(_incident(), "stranger", None, {"title": "x", "status": "resolved"})
        assert {d.reason for d in plan.denials} == {DenyReason.NOT_A_TEAM_MEMBER}

    def test_apply_plan(self):
        incident = _incident()
        plan = plan_incident_update(
            incident, "adm", TeamRole.ADMIN,
            {"title": "Fixed", "status": "resolved", "assigned_to_user_id": "u-9"},
        )
        apply_update_plan(incident, plan)
        assert incident.title == "Fixed"
        assert incident.status is IncidentStatus.RESOLVED
        assert incident.assigned_to_user_id == "u-9"
        assert incident.reported_by_user_id == "reporter"
