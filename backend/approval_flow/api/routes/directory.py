"""Directory API Routes - Roles and management chains"""
from typing import List
from fastapi import APIRouter, Depends

from ..deps import get_current_user_dep, get_correlation_id_dep, get_directory_service
from ...domain.models import ActorContext, HierarchyNode
from ...services.directory_service import DirectoryService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/roles", response_model=List[str])
async def list_roles(
    actor: ActorContext = Depends(get_current_user_dep),
    service: DirectoryService = Depends(get_directory_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Role names available for role-based steps

    Only roles held by at least one user are listed.
    """
    return service.list_roles()


@router.get("/users/{user_id}/hierarchy", response_model=List[HierarchyNode])
async def get_user_hierarchy(
    user_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: DirectoryService = Depends(get_directory_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """The user followed by each successive manager"""
    return service.get_user_hierarchy(user_id)
