"""
Approval Engine - The request state machine

This module contains the ApprovalEngine class that creates approval requests
and drives them through their steps.

=============================================================================
MODULE STRUCTURE
=============================================================================

1. INITIALIZATION
   - Constructor wiring store, resolver, validator, guard and audit writer

2. REQUEST CREATION
   - create_request: Validate the chain, create request and ledger entries
   - validate_workflow: Resolve every step of a template for an initiator

3. ACTION HANDLERS
   - approve: Approve the current step, advance or complete the request
   - reject: Reject the current step and terminate the request
   - add_comment: Record a comment without changing state
   - cancel_request: Cancel an open request

4. HELPERS
   - _load_request / _load_current_entry: Guarded lookups
   - _decide: Shared approve / reject transition
   - _build_detail: Request joined with its ledger

=============================================================================
STATE MACHINE
=============================================================================

    PENDING --approve (not last)--> IN_PROGRESS --approve (not last)--> IN_PROGRESS
    PENDING | IN_PROGRESS --approve (last)--> APPROVED
    PENDING | IN_PROGRESS --reject--> REJECTED
    PENDING | IN_PROGRESS --cancel--> CANCELLED

Every transition runs inside ``store.transaction()``. Ledger and request
writes are conditional updates; a lost update raises ConcurrencyError and
the transaction rolls back.

=============================================================================
"""

from typing import Any, Dict, Optional

from ..domain.models import (
    ApprovalRequest, ApprovalLedgerEntry, ActorContext, RequestDetail,
    ValidationResult, WorkflowTemplate
)
from ..domain.enums import RequestStatus, ApprovalStatus, OPEN_REQUEST_STATUSES
from ..domain.errors import (
    TemplateNotFoundError, RequestNotFoundError, LedgerEntryNotFoundError,
    PermissionDeniedError, InvalidStateError, ConcurrencyError,
    ValidationError, WorkflowValidationError
)
from ..repositories.base import ApprovalStore
from ..config.settings import Settings, get_settings
from .assignment_resolver import AssignmentResolver
from .workflow_validator import WorkflowValidator
from .permission_guard import PermissionGuard
from .audit_writer import AuditWriter
from ..utils.idgen import generate_request_id, generate_ledger_entry_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ApprovalEngine:
    """
    Central approval engine - orchestrates request operations

    Approvers are resolved once at creation and frozen in the ledger; later
    directory changes never rebind an existing request.
    """

    def __init__(self, store: ApprovalStore, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.store = store
        self.resolver = AssignmentResolver(store.directory, max_depth=self.settings.hierarchy_max_depth)
        self.validator = WorkflowValidator(self.resolver)
        self.permission_guard = PermissionGuard(admin_role_name=self.settings.admin_role_name)
        self.audit_writer = AuditWriter(store.audit)

    # =========================================================================
    # REQUEST CREATION
    # =========================================================================

    def validate_workflow(self, template_id: str, initiator_id: str) -> ValidationResult:
        """Resolve every step of the template for the initiator"""
        template = self._load_template(template_id)
        return self.validator.validate(template.steps, initiator_id)

    def create_request(
        self,
        template_id: str,
        initiator_id: str,
        title: str,
        description: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None
    ) -> RequestDetail:
        """
        Create a new approval request

        Args:
            template_id: Template to instantiate
            initiator_id: Directory user launching the request
            title: Request title
            description: Optional free text
            data: Opaque payload carried with the request

        Returns:
            The created request with its PENDING ledger entries

        Raises:
            TemplateNotFoundError: unknown template
            InvalidStateError: template is archived
            WorkflowValidationError: one or more steps cannot be assigned
        """
        if not title or not title.strip():
            raise ValidationError("Title is required", details={"errors": ["Title is required"]})

        with self.store.transaction():
            template = self._load_template(template_id)
            if not template.is_active:
                raise InvalidStateError(
                    f"Template {template_id} is archived and cannot start new requests",
                    details={"template_id": template_id}
                )

            result = self.validator.validate(template.steps, initiator_id)
            if not result.is_valid:
                logger.info(
                    f"Rejected request creation for template {template_id}",
                    extra={"template_id": template_id, "user_id": initiator_id}
                )
                raise WorkflowValidationError(
                    "Workflow cannot be assigned for this initiator",
                    details={"errors": result.errors, "template_id": template_id}
                )

            now = utc_now()
            request = ApprovalRequest(
                request_id=generate_request_id(),
                template_id=template.template_id,
                template_name=template.name,
                initiator_id=initiator_id,
                title=title.strip(),
                description=description,
                data=data or {},
                status=RequestStatus.PENDING,
                current_step=0,
                step_count=len(template.steps),
                created_at=now,
                updated_at=now
            )
            entries = [
                ApprovalLedgerEntry(
                    entry_id=generate_ledger_entry_id(),
                    request_id=request.request_id,
                    step_index=index,
                    approver_id=approver_id,
                    action_label=step.action_label,
                    step_kind=step.step_kind,
                    assignee=step.assignee,
                    status=ApprovalStatus.PENDING,
                    created_at=now,
                    updated_at=now
                )
                for index, (step, approver_id) in enumerate(zip(template.steps, result.approvers))
            ]

            self.store.requests.create(request)
            self.store.ledger.create_entries(entries)
            self.audit_writer.write_created(
                request.request_id,
                ActorContext(user_id=initiator_id),
                template_name=template.name,
                title=request.title
            )

        logger.info(
            f"Created request {request.request_id} with {len(entries)} step(s)",
            extra={"request_id": request.request_id, "template_id": template_id, "user_id": initiator_id}
        )
        return RequestDetail(request=request, approvals=entries)

    # =========================================================================
    # ACTION HANDLERS
    # =========================================================================

    def approve(
        self,
        request_id: str,
        actor: ActorContext,
        comment: Optional[str] = None,
        override: bool = False
    ) -> RequestDetail:
        """Approve the current step; the last approval completes the request"""
        return self._decide(request_id, actor, ApprovalStatus.APPROVED, comment, override)

    def reject(
        self,
        request_id: str,
        actor: ActorContext,
        comment: Optional[str] = None,
        override: bool = False
    ) -> RequestDetail:
        """Reject the current step; later steps stay PENDING and unreachable"""
        return self._decide(request_id, actor, ApprovalStatus.REJECTED, comment, override)

    def add_comment(self, request_id: str, actor: ActorContext, comment: str) -> RequestDetail:
        """Record a comment on the audit trail; no state change"""
        if not comment or not comment.strip():
            raise ValidationError("Comment is required", details={"errors": ["Comment is required"]})

        with self.store.transaction():
            request = self._load_request(request_id)
            entries = self.store.ledger.get_entries(request_id)
            if not self.permission_guard.can_comment(actor, request, entries):
                raise PermissionDeniedError("You cannot comment on this request")

            self.audit_writer.write_comment_added(request_id, actor, comment.strip())

        return RequestDetail(request=request, approvals=entries)

    def cancel_request(
        self,
        request_id: str,
        actor: ActorContext,
        reason: Optional[str] = None
    ) -> RequestDetail:
        """Cancel an open request; the ledger is left untouched"""
        with self.store.transaction():
            request = self._load_request(request_id)

            if not self.permission_guard.can_cancel(actor, request):
                raise PermissionDeniedError("You cannot cancel this request")

            if request.status not in OPEN_REQUEST_STATUSES:
                raise InvalidStateError(
                    f"Request is {request.status.value} and cannot be cancelled",
                    details={"request_id": request_id, "status": request.status.value}
                )

            now = utc_now()
            updated = self.store.requests.update_if(
                request_id,
                OPEN_REQUEST_STATUSES,
                {
                    "status": RequestStatus.CANCELLED.value,
                    "cancelled_at": now,
                    "cancel_reason": reason,
                    "updated_at": now
                }
            )
            if not updated:
                raise ConcurrencyError(
                    "Request was modified concurrently",
                    details={"request_id": request_id}
                )

            self.audit_writer.write_cancelled(request_id, actor, reason)
            detail = self._build_detail(request_id)

        logger.info(
            f"Cancelled request {request_id}",
            extra={"request_id": request_id, "actor_id": actor.user_id}
        )
        return detail

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _decide(
        self,
        request_id: str,
        actor: ActorContext,
        decision: ApprovalStatus,
        comment: Optional[str],
        override: bool
    ) -> RequestDetail:
        """Shared approve / reject transition"""
        with self.store.transaction():
            request = self._load_request(request_id)
            if request.status not in OPEN_REQUEST_STATUSES:
                raise InvalidStateError(
                    f"Request is {request.status.value} and no longer accepts decisions",
                    details={"request_id": request_id, "status": request.status.value}
                )

            entry = self._load_current_entry(request)

            if not self.permission_guard.can_decide(actor, entry, override):
                raise PermissionDeniedError(
                    "You are not the approver for the current step",
                    details={"request_id": request_id, "step_index": entry.step_index}
                )
            override_of = entry.approver_id if actor.user_id != entry.approver_id else None

            now = utc_now()
            if not self.store.ledger.mark_decided(entry.entry_id, decision, comment, actor.user_id, now):
                raise ConcurrencyError(
                    "Approval was already decided",
                    details={"request_id": request_id, "entry_id": entry.entry_id}
                )

            if decision == ApprovalStatus.REJECTED:
                updates = {"status": RequestStatus.REJECTED.value, "updated_at": now}
            elif request.is_last_step:
                updates = {"status": RequestStatus.APPROVED.value, "updated_at": now}
            else:
                updates = {
                    "status": RequestStatus.IN_PROGRESS.value,
                    "current_step": request.current_step + 1,
                    "updated_at": now
                }

            updated = self.store.requests.update_if(
                request_id, OPEN_REQUEST_STATUSES, updates, expected_step=request.current_step
            )
            if not updated:
                raise ConcurrencyError(
                    "Request was modified concurrently",
                    details={"request_id": request_id}
                )

            if decision == ApprovalStatus.REJECTED:
                self.audit_writer.write_rejected(request_id, actor, entry.step_index, comment, override_of)
            elif request.is_last_step:
                self.audit_writer.write_approved(request_id, actor, comment, override_of)
            else:
                self.audit_writer.write_step_progressed(request_id, actor, entry.step_index, comment, override_of)

            detail = self._build_detail(request_id)

        logger.info(
            f"Step {entry.step_index + 1} of request {request_id} {decision.value.lower()}",
            extra={
                "request_id": request_id,
                "entry_id": entry.entry_id,
                "actor_id": actor.user_id,
                "status": detail.request.status.value
            }
        )
        return detail

    def _load_template(self, template_id: str) -> WorkflowTemplate:
        template = self.store.templates.get(template_id)
        if not template:
            raise TemplateNotFoundError(
                f"Template {template_id} not found", details={"template_id": template_id}
            )
        return template

    def _load_request(self, request_id: str) -> ApprovalRequest:
        request = self.store.requests.get(request_id)
        if not request:
            raise RequestNotFoundError(
                f"Request {request_id} not found", details={"request_id": request_id}
            )
        return request

    def _load_current_entry(self, request: ApprovalRequest) -> ApprovalLedgerEntry:
        """PENDING ledger entry at the request's current step"""
        entry = self.store.ledger.get_entry_at_step(request.request_id, request.current_step)
        if not entry:
            raise LedgerEntryNotFoundError(
                f"No approval entry for step {request.current_step + 1}",
                details={"request_id": request.request_id, "step_index": request.current_step}
            )
        if entry.status != ApprovalStatus.PENDING:
            raise InvalidStateError(
                f"Step {request.current_step + 1} was already {entry.status.value.lower()}",
                details={"request_id": request.request_id, "step_index": request.current_step}
            )
        return entry

    def _build_detail(self, request_id: str) -> RequestDetail:
        return RequestDetail(
            request=self._load_request(request_id),
            approvals=self.store.ledger.get_entries(request_id)
        )
