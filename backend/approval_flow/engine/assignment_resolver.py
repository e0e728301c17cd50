"""Assignment Resolver - Map step assignees to concrete directory users

Resolution is read-only. An unknown role or a missing manager resolves to
``None``; the validator turns that into a per-step error message.
"""
import re
from typing import Dict, List, Optional, Tuple

from ..domain.models import (
    StepDefinition, RoleBasedAssignee, DynamicAssignee, DirectoryUser, HierarchyNode
)
from ..domain.enums import DynamicRule
from ..repositories.base import DirectoryRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


# Role names that refer to the same directory role. Keys and values are normalized.
ROLE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "finance": ("finance_manager",),
    "finance_manager": ("finance",),
    "hr": ("hr_specialist",),
    "hr_specialist": ("hr",),
    "ceo": ("chief_executive_officer",),
    "chief_executive_officer": ("ceo",),
    "legal": ("legal_counsel", "lawyer"),
    "legal_counsel": ("legal", "lawyer"),
    "lawyer": ("legal", "legal_counsel"),
    "accounting": ("accountant",),
    "accountant": ("accounting",),
}

_SEPARATORS = re.compile(r"[\s\-]+")


def normalize_role_name(role_name: str) -> str:
    """'Finance Manager' / 'finance-manager' / 'FINANCE_MANAGER' -> 'finance_manager'"""
    return _SEPARATORS.sub("_", role_name.strip()).lower()


def role_name_candidates(role_name: str) -> List[str]:
    """All spellings a stored role name may use for the given reference"""
    normalized = normalize_role_name(role_name)
    names = [role_name.strip(), normalized]
    for name in (normalized,) + ROLE_ALIASES.get(normalized, ()):
        names.append(name)
        names.append(name.replace("_", " "))
        names.append(name.replace("_", "-"))

    seen = set()
    candidates = []
    for name in names:
        key = name.lower()
        if name and key not in seen:
            seen.add(key)
            candidates.append(name)
    return candidates


class AssignmentResolver:
    """Resolve step assignees against the user directory"""

    def __init__(self, directory: DirectoryRepository, max_depth: int = 25):
        self.directory = directory
        self.max_depth = max_depth

    def resolve_role_based(self, role_name: str) -> Optional[str]:
        """First user (by user_id) holding the role, or None"""
        if not role_name or not role_name.strip():
            return None

        user = self.directory.find_first_with_role(role_name_candidates(role_name))
        if not user:
            logger.info(f"No user found with role '{role_name}'")
            return None
        return user.user_id

    def resolve_dynamic(self, rule: DynamicRule, initiator_id: str) -> Optional[str]:
        """Evaluate a dynamic rule relative to the initiator"""
        if rule == DynamicRule.INITIATOR_SUPERVISOR:
            initiator = self.directory.get_user(initiator_id)
            if not initiator:
                logger.warning(
                    f"Initiator {initiator_id} not found in directory",
                    extra={"user_id": initiator_id}
                )
                return None
            if not initiator.manager_id:
                return None
            manager = self.directory.get_user(initiator.manager_id)
            if not manager:
                logger.warning(
                    f"Manager {initiator.manager_id} of {initiator_id} not found in directory",
                    extra={"user_id": initiator_id}
                )
                return None
            return manager.user_id

        raise ValueError(f"Unsupported dynamic rule: {rule}")

    def resolve_step(self, step: StepDefinition, initiator_id: str) -> Optional[str]:
        """Resolve one step; dispatch is exhaustive over the assignee variants"""
        assignee = step.assignee
        if isinstance(assignee, RoleBasedAssignee):
            return self.resolve_role_based(assignee.role_name)
        if isinstance(assignee, DynamicAssignee):
            return self.resolve_dynamic(assignee.rule, initiator_id)
        raise ValueError(f"Unknown assignee variant: {type(assignee).__name__}")

    def get_user_hierarchy(self, user_id: str) -> List[HierarchyNode]:
        """
        Walk manager links upward starting at the user.

        The first node is the user; each following node is the previous
        node's manager. Cycles and over-deep chains end the walk.
        """
        chain: List[HierarchyNode] = []
        visited = set()
        current: Optional[DirectoryUser] = self.directory.get_user(user_id)

        while current:
            if current.user_id in visited:
                logger.warning(
                    f"Manager cycle detected in hierarchy of {user_id}",
                    extra={"user_id": user_id}
                )
                break
            if len(chain) >= self.max_depth:
                logger.warning(
                    f"Hierarchy walk for {user_id} stopped at depth {self.max_depth}",
                    extra={"user_id": user_id}
                )
                break
            visited.add(current.user_id)
            chain.append(HierarchyNode(
                user_id=current.user_id,
                display_name=current.display_name,
                email=current.email,
                role_name=current.role_name,
            ))
            current = self.directory.get_user(current.manager_id) if current.manager_id else None

        return chain
