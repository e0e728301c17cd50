"""Tests for domain models"""
import pytest
from pydantic import ValidationError

from approval_flow.domain.enums import AssigneeKind, DynamicRule, RequestStatus, StepKind
from approval_flow.domain.models import (
    ActorContext, DynamicAssignee, RoleBasedAssignee, StepDefinition
)


class TestStepDefinition:

    def test_nested_shape(self):
        step = StepDefinition.model_validate({
            "assignee": {"kind": "ROLE_BASED", "role_name": " Finance "},
            "action_label": "Finance Review",
        })
        assert step.assignee == RoleBasedAssignee(role_name="Finance")
        assert step.step_kind == StepKind.APPROVAL

    def test_flat_dynamic_shape(self):
        step = StepDefinition.model_validate({
            "assigneeType": "DYNAMIC",
            "dynamicAssignee": "INITIATOR_SUPERVISOR",
            "actionLabel": "Manager Approval",
        })
        assert step.assignee_kind == AssigneeKind.DYNAMIC
        assert step.assignee.rule == DynamicRule.INITIATOR_SUPERVISOR
        assert step.action_label == "Manager Approval"

    def test_legacy_supervisor_role_becomes_dynamic(self):
        step = StepDefinition.model_validate({"role": "INITIATOR_SUPERVISOR", "label": "Manager", "type": "approval"})
        assert step.assignee == DynamicAssignee(rule=DynamicRule.INITIATOR_SUPERVISOR)

    def test_legacy_dict(self):
        assert StepDefinition.legacy_dict("CEO", "CEO Approval") == {
            "assignee": {"kind": "ROLE_BASED", "role_name": "CEO"},
            "action_label": "CEO Approval",
            "step_kind": "approval",
        }

    @pytest.mark.parametrize("raw", [
        {"assignee": {"kind": "ROLE_BASED", "role_name": ""}},
        {"assignee": {"kind": "ROLE_BASED"}},
        {"assignee": {"kind": "DYNAMIC", "rule": "GRAND_BOSS"}},
        {"assignee": {"kind": "ROBOT", "role_name": "x"}},
        {"assignee": {"kind": "ROLE_BASED", "role_name": "CEO"}, "step_kind": "vote"},
        {"assignee": {"kind": "ROLE_BASED", "role_name": "CEO"}, "unexpected": 1},
    ])
    def test_malformed(self, raw):
        with pytest.raises(ValidationError):
            StepDefinition.model_validate(raw)

    def test_describe_assignee(self):
        role = StepDefinition.model_validate({"role": "Legal", "label": "Legal"})
        rule = StepDefinition.model_validate({"role": "INITIATOR_SUPERVISOR", "label": "Manager"})
        assert role.describe_assignee() == 'role "Legal"'
        assert rule.describe_assignee() == 'rule "INITIATOR_SUPERVISOR"'


class TestActorContext:

    def test_has_role_is_case_insensitive(self):
        actor = ActorContext(user_id="ADM", roles=["admin "])
        assert actor.has_role("Admin")
        assert not actor.has_role("Finance")


class TestRequestStatus:

    @pytest.mark.parametrize("status, terminal", [
        (RequestStatus.PENDING, False),
        (RequestStatus.IN_PROGRESS, False),
        (RequestStatus.APPROVED, True),
        (RequestStatus.REJECTED, True),
        (RequestStatus.CANCELLED, True),
    ])
    def test_terminal(self, status, terminal):
        assert status.is_terminal is terminal
