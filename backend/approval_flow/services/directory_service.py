"""Directory Service - Role and management chain lookups"""
from typing import List, Optional

from ..domain.models import HierarchyNode
from ..domain.errors import UserNotFoundError
from ..repositories.base import ApprovalStore
from ..engine.assignment_resolver import AssignmentResolver
from ..config.settings import get_settings
from ..utils.logger import get_logger

logger = get_logger(__name__)


class DirectoryService:
    """
    Service for directory operations

    The directory is owned by an external system; this service only reads it.
    """

    def __init__(self, store: ApprovalStore, max_depth: Optional[int] = None):
        self.store = store
        self.resolver = AssignmentResolver(
            store.directory,
            max_depth=max_depth or get_settings().hierarchy_max_depth
        )

    def list_roles(self) -> List[str]:
        """Distinct role names held by at least one user, sorted"""
        return self.store.directory.list_role_names()

    def get_user_hierarchy(self, user_id: str) -> List[HierarchyNode]:
        """The user followed by each successive manager"""
        if not self.store.directory.get_user(user_id):
            raise UserNotFoundError(f"User {user_id} not found", details={"user_id": user_id})
        return self.resolver.get_user_hierarchy(user_id)
