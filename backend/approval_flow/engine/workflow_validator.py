"""Workflow Validator - Check that every step of a template can be assigned"""
from typing import List, Optional, Sequence

from ..domain.models import StepDefinition, RoleBasedAssignee, DynamicAssignee, ValidationResult
from ..domain.enums import DynamicRule
from .assignment_resolver import AssignmentResolver
from ..utils.logger import get_logger

logger = get_logger(__name__)


class WorkflowValidator:
    """
    Resolve all steps for an initiator and collect one error per failed step.

    The resolved approvers are returned index-aligned with the steps so that
    request creation binds exactly the users that were validated.
    """

    def __init__(self, resolver: AssignmentResolver):
        self.resolver = resolver

    def validate(self, steps: Sequence[StepDefinition], initiator_id: str) -> ValidationResult:
        errors: List[str] = []
        approvers: List[Optional[str]] = []

        if not steps:
            errors.append("Template has no steps")

        for index, step in enumerate(steps):
            approver_id = self.resolver.resolve_step(step, initiator_id)
            approvers.append(approver_id)
            if approver_id is None:
                errors.append(f"Step {index + 1}: {self._failure_reason(step)}")

        if errors:
            logger.info(
                f"Workflow validation failed with {len(errors)} error(s)",
                extra={"user_id": initiator_id}
            )

        return ValidationResult(is_valid=not errors, errors=errors, approvers=approvers)

    @staticmethod
    def _failure_reason(step: StepDefinition) -> str:
        assignee = step.assignee
        if isinstance(assignee, RoleBasedAssignee):
            return f'No user found with role "{assignee.role_name}"'
        if isinstance(assignee, DynamicAssignee) and assignee.rule == DynamicRule.INITIATOR_SUPERVISOR:
            return "Initiator has no assigned manager"
        return f"No user found for {step.describe_assignee()}"
