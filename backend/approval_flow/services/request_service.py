"""Request Service - Read-side queries over requests, ledger and audit trail"""
import math
from typing import Dict, List, Optional

from ..domain.models import (
    ActorContext, ApprovalRequest, AuditEvent, DirectoryUser, PendingApproval, RequestDetail,
    RequestPage, WorkflowTemplate
)
from ..domain.enums import RequestStatus, OPEN_REQUEST_STATUSES
from ..domain.errors import PermissionDeniedError, RequestNotFoundError, ValidationError
from ..repositories.base import ApprovalStore
from ..engine.permission_guard import PermissionGuard
from ..config.settings import Settings, get_settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


def _matches(search: Optional[str], *fields: Optional[str]) -> bool:
    """Case-insensitive substring match across any of the fields"""
    if not search or not search.strip():
        return True
    needle = search.strip().lower()
    return any(field and needle in field.lower() for field in fields)


class RequestService:
    """Service for request queries"""

    def __init__(self, store: ApprovalStore, settings: Optional[Settings] = None):
        self.store = store
        settings = settings or get_settings()
        self.permission_guard = PermissionGuard(admin_role_name=settings.admin_role_name)

    def get_pending_approvals_for_user(self, user_id: str, search: Optional[str] = None) -> List[PendingApproval]:
        """
        Pending ledger entries the user must act on now

        Only entries at their request's current step on an open request are
        listed; later steps of the same request are not yet actionable.
        """
        entries = self.store.ledger.list_pending_for_approver(user_id)
        if not entries:
            return []

        requests = self.store.requests.get_many(entry.request_id for entry in entries)
        templates = {}
        initiators: Dict[str, Optional[DirectoryUser]] = {}
        pending: List[PendingApproval] = []

        for entry in entries:
            request = requests.get(entry.request_id)
            if not request or request.status not in OPEN_REQUEST_STATUSES:
                continue
            if request.current_step != entry.step_index:
                continue

            if request.template_id not in templates:
                templates[request.template_id] = self.store.templates.get(request.template_id)
            template: Optional[WorkflowTemplate] = templates[request.template_id]
            template_name = template.name if template else request.template_name

            if request.initiator_id not in initiators:
                initiators[request.initiator_id] = self.store.directory.get_user(request.initiator_id)
            initiator = initiators[request.initiator_id]

            if not _matches(
                search,
                request.title,
                request.description,
                template_name,
                initiator.display_name if initiator else None,
                initiator.email if initiator else None
            ):
                continue

            pending.append(PendingApproval(
                approval=entry,
                request=request,
                initiator=initiator,
                template_name=template_name,
                template_steps=template.steps if template else []
            ))

        return pending

    def get_my_requests(self, initiator_id: str, search: Optional[str] = None) -> List[RequestDetail]:
        """Requests the user initiated, newest first"""
        requests = [
            request for request in self.store.requests.list_requests(initiator_id=initiator_id)
            if _matches(search, request.title, request.description, request.template_name)
        ]
        return self._with_ledger(requests)

    def list_requests(
        self,
        status: Optional[RequestStatus] = None,
        page: int = 1,
        limit: int = 20
    ) -> RequestPage:
        """Admin listing of all requests with pagination metadata"""
        if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(
                "Invalid pagination parameters",
                details={"errors": [f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}"]}
            )

        total_count = self.store.requests.count_requests(status=status)
        requests = self.store.requests.list_requests(
            status=status, skip=(page - 1) * limit, limit=limit
        )
        return RequestPage(
            requests=self._with_ledger(requests),
            page=page,
            limit=limit,
            total_pages=math.ceil(total_count / limit),
            total_count=total_count
        )

    def get_request(self, request_id: str, actor: ActorContext) -> RequestDetail:
        """Request with its ledger entries ordered by step"""
        return self._get_visible_detail(request_id, actor)

    def get_audit_trail(self, request_id: str, actor: ActorContext) -> List[AuditEvent]:
        """Audit events of a request, newest first"""
        self._get_visible_detail(request_id, actor)
        return self.store.audit.list_for_request(request_id)

    def _get_visible_detail(self, request_id: str, actor: ActorContext) -> RequestDetail:
        """Initiator, bound approvers and admins may read a request"""
        request = self._get_request_or_raise(request_id)
        entries = self.store.ledger.get_entries(request_id)
        if not self.permission_guard.can_view(actor, request, entries):
            logger.warning(
                f"Read of request {request_id} denied to {actor.user_id}",
                extra={"request_id": request_id, "actor_id": actor.user_id}
            )
            raise PermissionDeniedError(
                "You cannot view this request", details={"request_id": request_id}
            )
        return RequestDetail(request=request, approvals=entries)

    def _get_request_or_raise(self, request_id: str) -> ApprovalRequest:
        request = self.store.requests.get(request_id)
        if not request:
            raise RequestNotFoundError(f"Request {request_id} not found", details={"request_id": request_id})
        return request

    def _with_ledger(self, requests: List[ApprovalRequest]) -> List[RequestDetail]:
        ledger = self.store.ledger.get_entries_for_requests(request.request_id for request in requests)
        return [
            RequestDetail(request=request, approvals=ledger.get(request.request_id, []))
            for request in requests
        ]
