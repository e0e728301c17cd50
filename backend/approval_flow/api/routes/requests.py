"""Request API Routes - Launching requests and acting on approval steps"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from ..deps import (
    get_current_user_dep, get_correlation_id_dep, require_admin_dep,
    get_engine, get_request_service
)
from ...domain.models import (
    ActorContext, AuditEvent, PendingApproval, RequestDetail, RequestPage
)
from ...domain.enums import RequestStatus
from ...engine.engine import ApprovalEngine
from ...services.request_service import RequestService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request Models
# ============================================================================

class CreateRequestBody(BaseModel):
    """Request to launch a template"""
    template_id: str
    title: str = Field(..., max_length=300)
    description: Optional[str] = Field(None, max_length=5000)
    data: Dict[str, Any] = Field(default_factory=dict)


class DecisionBody(BaseModel):
    """Approve / reject payload"""
    comment: Optional[str] = Field(None, max_length=2000)
    override: bool = Field(False, description="Admin decides in place of the bound approver")


class CommentBody(BaseModel):
    """Comment payload"""
    comment: str = Field(..., max_length=2000)


class CancelBody(BaseModel):
    """Cancel payload"""
    reason: Optional[str] = Field(None, max_length=1000)


# ============================================================================
# Routes
# ============================================================================

@router.post("", response_model=RequestDetail, status_code=status.HTTP_201_CREATED)
async def create_request(
    body: CreateRequestBody,
    actor: ActorContext = Depends(get_current_user_dep),
    engine: ApprovalEngine = Depends(get_engine),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Launch a request against a template

    The current user is the initiator. Every step must resolve to an approver
    or the request is refused with the full list of reasons.
    """
    return engine.create_request(
        template_id=body.template_id,
        initiator_id=actor.user_id,
        title=body.title,
        description=body.description,
        data=body.data
    )


@router.get("/mine", response_model=List[RequestDetail])
async def get_my_requests(
    search: Optional[str] = Query(None, max_length=200),
    actor: ActorContext = Depends(get_current_user_dep),
    service: RequestService = Depends(get_request_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Requests initiated by the current user"""
    return service.get_my_requests(actor.user_id, search=search)


@router.get("/pending-approvals", response_model=List[PendingApproval])
async def get_pending_approvals(
    search: Optional[str] = Query(None, max_length=200),
    actor: ActorContext = Depends(get_current_user_dep),
    service: RequestService = Depends(get_request_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Steps waiting on the current user"""
    return service.get_pending_approvals_for_user(actor.user_id, search=search)


@router.get("", response_model=RequestPage)
async def list_requests(
    status: Optional[RequestStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: ActorContext = Depends(require_admin_dep),
    service: RequestService = Depends(get_request_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """All requests (admin)"""
    return service.list_requests(status=status, page=page, limit=limit)


@router.get("/{request_id}", response_model=RequestDetail)
async def get_request(
    request_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: RequestService = Depends(get_request_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Request with its approval entries (initiator, bound approvers, admins)"""
    return service.get_request(request_id, actor)


@router.get("/{request_id}/audit-trail", response_model=List[AuditEvent])
async def get_audit_trail(
    request_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: RequestService = Depends(get_request_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Audit events, newest first"""
    return service.get_audit_trail(request_id, actor)


@router.post("/{request_id}/approve", response_model=RequestDetail)
async def approve(
    request_id: str,
    body: Optional[DecisionBody] = None,
    actor: ActorContext = Depends(get_current_user_dep),
    engine: ApprovalEngine = Depends(get_engine),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Approve the current step"""
    body = body or DecisionBody()
    return engine.approve(request_id, actor, comment=body.comment, override=body.override)


@router.post("/{request_id}/reject", response_model=RequestDetail)
async def reject(
    request_id: str,
    body: Optional[DecisionBody] = None,
    actor: ActorContext = Depends(get_current_user_dep),
    engine: ApprovalEngine = Depends(get_engine),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Reject the current step; the request ends REJECTED"""
    body = body or DecisionBody()
    return engine.reject(request_id, actor, comment=body.comment, override=body.override)


@router.post("/{request_id}/comments", response_model=RequestDetail)
async def add_comment(
    request_id: str,
    body: CommentBody,
    actor: ActorContext = Depends(get_current_user_dep),
    engine: ApprovalEngine = Depends(get_engine),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Add a comment to the request's audit trail"""
    return engine.add_comment(request_id, actor, body.comment)


@router.post("/{request_id}/cancel", response_model=RequestDetail)
async def cancel_request(
    request_id: str,
    body: Optional[CancelBody] = None,
    actor: ActorContext = Depends(get_current_user_dep),
    engine: ApprovalEngine = Depends(get_engine),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Cancel an open request (initiator or admin)"""
    return engine.cancel_request(request_id, actor, reason=body.reason if body else None)
