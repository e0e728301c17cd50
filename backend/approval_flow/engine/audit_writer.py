"""Audit Writer - Append-only audit events"""
from typing import Optional

from ..domain.models import AuditEvent, ActorContext
from ..domain.enums import AuditAction
from ..repositories.base import AuditRepository
from ..utils.idgen import generate_audit_event_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuditWriter:
    """
    Write audit events (append-only)

    Every state change of a request produces exactly one audit event. Events
    are never updated or deleted.
    """

    def __init__(self, repo: AuditRepository):
        self.repo = repo

    def write_event(
        self,
        request_id: str,
        actor_id: str,
        action: AuditAction,
        description: str,
        detail: Optional[str] = None
    ) -> AuditEvent:
        """Write a single audit event"""
        event = AuditEvent(
            event_id=generate_audit_event_id(),
            request_id=request_id,
            actor_id=actor_id,
            action=action,
            description=description,
            detail=detail,
            created_at=utc_now()
        )
        return self.repo.append(event)

    def write_created(self, request_id: str, actor: ActorContext, template_name: str, title: str) -> AuditEvent:
        """Write request creation event"""
        return self.write_event(
            request_id=request_id,
            actor_id=actor.user_id,
            action=AuditAction.CREATED,
            description=f"Created new {template_name} request",
            detail=title
        )

    def write_step_progressed(
        self,
        request_id: str,
        actor: ActorContext,
        step_index: int,
        comment: Optional[str] = None,
        override_of: Optional[str] = None
    ) -> AuditEvent:
        """Write step approval that moves the request to the next step"""
        return self.write_event(
            request_id=request_id,
            actor_id=actor.user_id,
            action=AuditAction.STEP_PROGRESSED,
            description=f"Approved step {step_index + 1} and moved to step {step_index + 2}",
            detail=self._decision_detail(comment, override_of)
        )

    def write_approved(
        self,
        request_id: str,
        actor: ActorContext,
        comment: Optional[str] = None,
        override_of: Optional[str] = None
    ) -> AuditEvent:
        """Write final approval event"""
        return self.write_event(
            request_id=request_id,
            actor_id=actor.user_id,
            action=AuditAction.APPROVED,
            description="Request fully approved and completed",
            detail=self._decision_detail(comment, override_of)
        )

    def write_rejected(
        self,
        request_id: str,
        actor: ActorContext,
        step_index: int,
        comment: Optional[str] = None,
        override_of: Optional[str] = None
    ) -> AuditEvent:
        """Write rejection event"""
        return self.write_event(
            request_id=request_id,
            actor_id=actor.user_id,
            action=AuditAction.REJECTED,
            description=f"Request rejected at step {step_index + 1}",
            detail=self._decision_detail(comment, override_of)
        )

    def write_comment_added(self, request_id: str, actor: ActorContext, comment: str) -> AuditEvent:
        """Write comment event"""
        return self.write_event(
            request_id=request_id,
            actor_id=actor.user_id,
            action=AuditAction.COMMENT_ADDED,
            description="Added a comment",
            detail=comment
        )

    def write_cancelled(
        self,
        request_id: str,
        actor: ActorContext,
        reason: Optional[str] = None
    ) -> AuditEvent:
        """Write cancellation event"""
        return self.write_event(
            request_id=request_id,
            actor_id=actor.user_id,
            action=AuditAction.CANCELLED,
            description="Request cancelled",
            detail=reason
        )

    @staticmethod
    def _decision_detail(comment: Optional[str], override_of: Optional[str]) -> Optional[str]:
        """Comment text; overrides are prefixed with the bound approver they replaced"""
        if not override_of:
            return comment or None
        note = f"Administrative override on behalf of {override_of}"
        return f"{note}: {comment}" if comment else note
