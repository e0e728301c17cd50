"""Template API Routes - Admin template management"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from ..deps import (
    get_current_user_dep, get_correlation_id_dep, require_admin_dep, get_template_service
)
from ...domain.models import ActorContext, WorkflowTemplate
from ...services.template_service import TemplateService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request Models
# ============================================================================

class CreateTemplateRequest(BaseModel):
    """Request to create a template; steps may use any accepted step shape"""
    name: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    steps: List[Dict[str, Any]] = Field(default_factory=list)


class UpdateTemplateRequest(BaseModel):
    """Request to update a template; omitted fields are left unchanged"""
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    steps: Optional[List[Dict[str, Any]]] = None


class ArchiveTemplateRequest(BaseModel):
    """Request to archive a template"""
    reason: Optional[str] = Field(None, max_length=1000)


# ============================================================================
# Routes
# ============================================================================

@router.post("", response_model=WorkflowTemplate, status_code=status.HTTP_201_CREATED)
async def create_template(
    request: CreateTemplateRequest,
    actor: ActorContext = Depends(require_admin_dep),
    service: TemplateService = Depends(get_template_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Create a new template

    All malformed steps are reported together in ``details.errors``.
    """
    return service.create_template(
        name=request.name,
        description=request.description,
        steps=request.steps,
        actor=actor
    )


@router.get("", response_model=List[WorkflowTemplate])
async def list_templates(
    active_only: bool = Query(False),
    actor: ActorContext = Depends(get_current_user_dep),
    service: TemplateService = Depends(get_template_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """List templates, newest first"""
    return service.list_templates(active_only=active_only)


@router.get("/{template_id}", response_model=WorkflowTemplate)
async def get_template(
    template_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: TemplateService = Depends(get_template_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Get template by ID"""
    return service.get_template(template_id)


@router.put("/{template_id}", response_model=WorkflowTemplate)
async def update_template(
    template_id: str,
    request: UpdateTemplateRequest,
    actor: ActorContext = Depends(require_admin_dep),
    service: TemplateService = Depends(get_template_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Update template name, description and/or steps"""
    return service.update_template(
        template_id,
        actor=actor,
        name=request.name,
        description=request.description,
        steps=request.steps
    )


@router.post("/{template_id}/archive", response_model=WorkflowTemplate)
async def archive_template(
    template_id: str,
    request: Optional[ArchiveTemplateRequest] = None,
    actor: ActorContext = Depends(require_admin_dep),
    service: TemplateService = Depends(get_template_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Archive a template; it can no longer start requests"""
    return service.archive_template(
        template_id, actor=actor, reason=request.reason if request else None
    )


@router.post("/{template_id}/restore", response_model=WorkflowTemplate)
async def restore_template(
    template_id: str,
    actor: ActorContext = Depends(require_admin_dep),
    service: TemplateService = Depends(get_template_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Restore an archived template"""
    return service.restore_template(template_id, actor=actor)
