"""Template Service - Workflow template management business logic"""
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from ..domain.models import WorkflowTemplate, StepDefinition, ActorContext
from ..domain.errors import TemplateNotFoundError, TemplateValidationError, InvalidStateError
from ..repositories.base import ApprovalStore
from ..utils.idgen import generate_template_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

StepInput = Union[StepDefinition, Dict[str, Any]]


class TemplateService:
    """Service for template operations"""

    def __init__(self, store: ApprovalStore):
        self.store = store
        self.repo = store.templates

    def create_template(
        self,
        name: str,
        description: Optional[str],
        steps: Sequence[StepInput],
        actor: ActorContext
    ) -> WorkflowTemplate:
        """Create a new active template; all malformed steps are reported together"""
        errors = self._check_name(name)
        parsed, step_errors = self.parse_steps(steps)
        errors.extend(step_errors)
        if errors:
            raise TemplateValidationError("Template is invalid", details={"errors": errors})

        now = utc_now()
        template = WorkflowTemplate(
            template_id=generate_template_id(),
            name=name.strip(),
            description=description,
            steps=parsed,
            is_active=True,
            created_by=actor.user_id,
            created_at=now,
            updated_at=now
        )

        self.repo.create(template)
        logger.info(
            f"Created template {template.template_id} with {len(parsed)} step(s)",
            extra={"template_id": template.template_id, "actor_id": actor.user_id}
        )
        return template

    def update_template(
        self,
        template_id: str,
        actor: ActorContext,
        name: Optional[str] = None,
        description: Optional[str] = None,
        steps: Optional[Sequence[StepInput]] = None
    ) -> WorkflowTemplate:
        """
        Update template metadata and/or steps

        Requests already created keep the approvers bound at their creation;
        only new requests see the changed steps.
        """
        self.get_template(template_id)

        errors: List[str] = []
        updates: Dict[str, Any] = {}
        if name is not None:
            errors.extend(self._check_name(name))
            updates["name"] = name.strip()
        if description is not None:
            updates["description"] = description
        if steps is not None:
            parsed, step_errors = self.parse_steps(steps)
            errors.extend(step_errors)
            updates["steps"] = parsed
        if errors:
            raise TemplateValidationError("Template is invalid", details={"errors": errors})

        updates["updated_at"] = utc_now()
        updated = self.repo.update(template_id, updates)
        if not updated:
            raise TemplateNotFoundError(f"Template {template_id} not found", details={"template_id": template_id})

        logger.info(
            f"Updated template {template_id}",
            extra={"template_id": template_id, "actor_id": actor.user_id}
        )
        return updated

    def archive_template(
        self,
        template_id: str,
        actor: ActorContext,
        reason: Optional[str] = None
    ) -> WorkflowTemplate:
        """Archive an active template; existing requests are unaffected"""
        self.get_template(template_id)
        now = utc_now()

        updated = self.repo.update_if_active(
            template_id,
            expected_active=True,
            updates={
                "is_active": False,
                "archived_at": now,
                "archive_reason": reason,
                "archived_by": actor.user_id,
                "updated_at": now
            }
        )
        if not updated:
            raise InvalidStateError(
                f"Template {template_id} is already archived", details={"template_id": template_id}
            )

        logger.info(
            f"Archived template {template_id}",
            extra={"template_id": template_id, "actor_id": actor.user_id}
        )
        return updated

    def restore_template(self, template_id: str, actor: ActorContext) -> WorkflowTemplate:
        """Restore an archived template"""
        self.get_template(template_id)

        updated = self.repo.update_if_active(
            template_id,
            expected_active=False,
            updates={
                "is_active": True,
                "archived_at": None,
                "archive_reason": None,
                "archived_by": None,
                "updated_at": utc_now()
            }
        )
        if not updated:
            raise InvalidStateError(
                f"Template {template_id} is not archived", details={"template_id": template_id}
            )

        logger.info(
            f"Restored template {template_id}",
            extra={"template_id": template_id, "actor_id": actor.user_id}
        )
        return updated

    def get_template(self, template_id: str) -> WorkflowTemplate:
        """Get template by ID"""
        template = self.repo.get(template_id)
        if not template:
            raise TemplateNotFoundError(f"Template {template_id} not found", details={"template_id": template_id})
        return template

    def list_templates(self, active_only: bool = False) -> List[WorkflowTemplate]:
        """List templates, newest first"""
        return self.repo.list_templates(active_only=active_only)

    @staticmethod
    def parse_steps(steps: Sequence[StepInput]) -> Tuple[List[StepDefinition], List[str]]:
        """Parse step inputs in any accepted shape, collecting one message per bad step"""
        parsed: List[StepDefinition] = []
        errors: List[str] = []

        if not steps:
            errors.append("Template must have at least one step")

        for index, raw in enumerate(steps or []):
            if isinstance(raw, StepDefinition):
                parsed.append(raw)
                continue
            try:
                parsed.append(StepDefinition.model_validate(raw))
            except PydanticValidationError as e:
                reasons = "; ".join(
                    f"{'.'.join(str(part) for part in err['loc']) or 'step'}: {err['msg']}"
                    for err in e.errors()
                )
                errors.append(f"Step {index + 1}: {reasons}")

        return parsed, errors

    @staticmethod
    def _check_name(name: Optional[str]) -> List[str]:
        if not name or not name.strip():
            return ["Template name is required"]
        return []
