"""API Dependencies - Common dependencies for routes"""
from functools import lru_cache
from typing import Optional
from fastapi import Depends, Header

from ..domain.models import ActorContext
from ..domain.errors import AuthenticationError, PermissionDeniedError
from ..config.settings import get_settings
from ..repositories.base import ApprovalStore
from ..repositories.mongo_store import MongoStore
from ..engine.engine import ApprovalEngine
from ..services.template_service import TemplateService
from ..services.request_service import RequestService
from ..services.directory_service import DirectoryService
from ..utils.jwt import get_current_user as _jwt_get_current_user  # Internal use only
from ..utils.logger import set_correlation_id
from ..utils.idgen import generate_correlation_id


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    If client provides X-Correlation-Id, use it.
    Otherwise generate a new one.
    """
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


async def get_current_user_dep(
    authorization: Optional[str] = Header(None)
) -> ActorContext:
    """
    Dependency to get current user from Authorization header

    Raises:
        AuthenticationError: 401 if token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError("Authorization header is missing")
    return _jwt_get_current_user(authorization)


async def require_admin_dep(
    actor: ActorContext = Depends(get_current_user_dep)
) -> ActorContext:
    """Dependency for admin-only routes"""
    role = get_settings().admin_role_name
    if not actor.has_role(role):
        raise PermissionDeniedError(f"The {role} role is required", details={"required_role": role})
    return actor


# ============================================================================
# Store & Services
# ============================================================================

@lru_cache()
def _default_store() -> MongoStore:
    return MongoStore()


def get_store() -> ApprovalStore:
    """Store used by all services; overridden in tests"""
    return _default_store()


def get_engine(store: ApprovalStore = Depends(get_store)) -> ApprovalEngine:
    return ApprovalEngine(store)


def get_template_service(store: ApprovalStore = Depends(get_store)) -> TemplateService:
    return TemplateService(store)


def get_request_service(store: ApprovalStore = Depends(get_store)) -> RequestService:
    return RequestService(store)


def get_directory_service(store: ApprovalStore = Depends(get_store)) -> DirectoryService:
    return DirectoryService(store)
