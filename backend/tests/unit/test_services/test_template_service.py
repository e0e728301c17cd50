"""Tests for template management"""
import pytest

from approval_flow.domain.enums import AssigneeKind, DynamicRule, StepKind
from approval_flow.domain.errors import InvalidStateError, TemplateNotFoundError, TemplateValidationError
from approval_flow.domain.models import DynamicAssignee, RoleBasedAssignee


class TestCreateTemplate:

    def test_creates_active_template(self, template_service, admin, make_template):
        template = make_template()

        assert template.template_id.startswith("TPL-")
        assert template.is_active
        assert template.created_by == "ADM"
        assert [step.assignee_kind for step in template.steps] == [AssigneeKind.ROLE_BASED, AssigneeKind.DYNAMIC]
        assert template_service.get_template(template.template_id) == template

    def test_accepts_legacy_and_flat_steps(self, template_service, admin):
        template = template_service.create_template(
            name="Contract Approval",
            description=None,
            steps=[
                {"role": "INITIATOR_SUPERVISOR", "label": "Manager Review", "type": "approval"},
                {"role": "LEGAL", "label": "Legal Review"},
                {"assigneeType": "ROLE_BASED", "roleBasedAssignee": "CEO", "actionLabel": "CEO Approval", "type": "task"},
            ],
            actor=admin,
        )

        first, second, third = template.steps
        assert first.assignee == DynamicAssignee(rule=DynamicRule.INITIATOR_SUPERVISOR)
        assert first.action_label == "Manager Review"
        assert second.assignee == RoleBasedAssignee(role_name="LEGAL")
        assert second.step_kind == StepKind.APPROVAL
        assert third.step_kind == StepKind.TASK

    def test_collects_every_malformed_step(self, template_service, admin):
        with pytest.raises(TemplateValidationError) as exc_info:
            template_service.create_template(
                name="Broken",
                description=None,
                steps=[
                    {"assignee": {"kind": "ROLE_BASED", "role_name": "  "}},
                    {"assignee": {"kind": "ROLE_BASED", "role_name": "Finance"}},
                    {"assignee": {"kind": "DYNAMIC", "rule": "SKIP_LEVEL_MANAGER"}},
                ],
                actor=admin,
            )

        errors = exc_info.value.errors
        assert len(errors) == 2
        assert errors[0].startswith("Step 1:")
        assert errors[1].startswith("Step 3:")

    def test_requires_a_step(self, template_service, admin):
        with pytest.raises(TemplateValidationError) as exc_info:
            template_service.create_template(name="Empty", description=None, steps=[], actor=admin)
        assert exc_info.value.errors == ["Template must have at least one step"]

    def test_requires_a_name(self, template_service, admin):
        with pytest.raises(TemplateValidationError) as exc_info:
            template_service.create_template(
                name=" ",
                description=None,
                steps=[{"assignee": {"kind": "ROLE_BASED", "role_name": "CEO"}}],
                actor=admin,
            )
        assert "Template name is required" in exc_info.value.errors

    def test_nothing_is_stored_on_failure(self, template_service, admin):
        with pytest.raises(TemplateValidationError):
            template_service.create_template(name="", description=None, steps=[], actor=admin)
        assert template_service.list_templates() == []


class TestUpdateTemplate:

    def test_updates_fields(self, template_service, admin, make_template):
        template = make_template()

        updated = template_service.update_template(
            template.template_id,
            actor=admin,
            name="Payment Request v2",
            steps=[{"assignee": {"kind": "ROLE_BASED", "role_name": "CEO"}}],
        )

        assert updated.name == "Payment Request v2"
        assert updated.description == template.description
        assert len(updated.steps) == 1
        assert updated.updated_at >= template.updated_at

    def test_invalid_steps_are_rejected(self, template_service, admin, make_template):
        template = make_template()
        with pytest.raises(TemplateValidationError):
            template_service.update_template(template.template_id, actor=admin, steps=[{"nonsense": True}])
        assert len(template_service.get_template(template.template_id).steps) == 2

    def test_unknown_template(self, template_service, admin):
        with pytest.raises(TemplateNotFoundError):
            template_service.update_template("TPL-missing", actor=admin, name="x")


class TestArchiveRestore:

    def test_archive_then_restore(self, template_service, admin, make_template):
        template = make_template()

        archived = template_service.archive_template(template.template_id, actor=admin, reason="Replaced")
        assert not archived.is_active
        assert archived.archive_reason == "Replaced"
        assert archived.archived_by == "ADM"
        assert archived.archived_at is not None

        restored = template_service.restore_template(template.template_id, actor=admin)
        assert restored.is_active
        assert restored.archived_at is None
        assert restored.archive_reason is None

    def test_archive_twice_conflicts(self, template_service, admin, make_template):
        template = make_template()
        template_service.archive_template(template.template_id, actor=admin)
        with pytest.raises(InvalidStateError):
            template_service.archive_template(template.template_id, actor=admin)

    def test_restore_active_conflicts(self, template_service, admin, make_template):
        template = make_template()
        with pytest.raises(InvalidStateError):
            template_service.restore_template(template.template_id, actor=admin)

    def test_archive_unknown(self, template_service, admin):
        with pytest.raises(TemplateNotFoundError):
            template_service.archive_template("TPL-missing", actor=admin)

    def test_active_only_listing(self, template_service, admin, make_template):
        keep = make_template(name="Keep")
        gone = make_template(name="Gone")
        template_service.archive_template(gone.template_id, actor=admin)

        assert [t.template_id for t in template_service.list_templates(active_only=True)] == [keep.template_id]
        assert len(template_service.list_templates()) == 2
