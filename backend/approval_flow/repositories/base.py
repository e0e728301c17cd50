"""Repository Interfaces - Storage contracts the engine depends on

The engine and services only talk to these abstractions. Two stores
implement them: ``MongoStore`` (production) and ``InMemoryStore`` (tests and
local tooling). Serialization to and from storage documents happens inside
the implementations; callers only see domain models.
"""
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence
from pydantic import BaseModel

from ..domain.models import (
    WorkflowTemplate, ApprovalRequest, ApprovalLedgerEntry, AuditEvent, DirectoryUser
)
from ..domain.enums import RequestStatus, ApprovalStatus


class TemplateRepository(ABC):
    """Workflow template persistence"""

    @abstractmethod
    def create(self, template: WorkflowTemplate) -> WorkflowTemplate: ...

    @abstractmethod
    def get(self, template_id: str) -> Optional[WorkflowTemplate]: ...

    @abstractmethod
    def update(self, template_id: str, updates: Dict[str, Any]) -> Optional[WorkflowTemplate]: ...

    @abstractmethod
    def update_if_active(
        self, template_id: str, expected_active: bool, updates: Dict[str, Any]
    ) -> Optional[WorkflowTemplate]:
        """Apply updates only while ``is_active == expected_active``; None when nothing matched"""

    @abstractmethod
    def list_templates(self, active_only: bool = False) -> List[WorkflowTemplate]: ...


class RequestRepository(ABC):
    """Approval request persistence"""

    @abstractmethod
    def create(self, request: ApprovalRequest) -> ApprovalRequest: ...

    @abstractmethod
    def get(self, request_id: str) -> Optional[ApprovalRequest]: ...

    @abstractmethod
    def get_many(self, request_ids: Iterable[str]) -> Dict[str, ApprovalRequest]: ...

    @abstractmethod
    def update_if(
        self,
        request_id: str,
        expected_statuses: Sequence[RequestStatus],
        updates: Dict[str, Any],
        expected_step: Optional[int] = None,
    ) -> bool:
        """Conditional update; False when the request no longer matches"""

    @abstractmethod
    def list_requests(
        self,
        initiator_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[ApprovalRequest]:
        """Newest first"""

    @abstractmethod
    def count_requests(self, initiator_id: Optional[str] = None, status: Optional[RequestStatus] = None) -> int: ...


class LedgerRepository(ABC):
    """Approval ledger persistence; one entry per (request, step)"""

    @abstractmethod
    def create_entries(self, entries: List[ApprovalLedgerEntry]) -> List[ApprovalLedgerEntry]: ...

    @abstractmethod
    def get_entries(self, request_id: str) -> List[ApprovalLedgerEntry]:
        """Ordered by step index"""

    @abstractmethod
    def get_entries_for_requests(self, request_ids: Iterable[str]) -> Dict[str, List[ApprovalLedgerEntry]]: ...

    @abstractmethod
    def get_entry_at_step(self, request_id: str, step_index: int) -> Optional[ApprovalLedgerEntry]: ...

    @abstractmethod
    def mark_decided(
        self,
        entry_id: str,
        status: ApprovalStatus,
        comment: Optional[str],
        decided_by: str,
        decided_at: datetime,
    ) -> bool:
        """PENDING -> status, only if still PENDING; False when the update lost"""

    @abstractmethod
    def list_pending_for_approver(self, approver_id: str) -> List[ApprovalLedgerEntry]:
        """Newest first"""


class AuditRepository(ABC):
    """Append-only audit event persistence"""

    @abstractmethod
    def append(self, event: AuditEvent) -> AuditEvent: ...

    @abstractmethod
    def list_for_request(self, request_id: str) -> List[AuditEvent]:
        """Newest first; ties keep reverse insertion order"""

    @abstractmethod
    def count_for_request(self, request_id: str) -> int: ...


class DirectoryRepository(ABC):
    """Read access to the organization directory"""

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[DirectoryUser]: ...

    @abstractmethod
    def find_first_with_role(self, role_names: Sequence[str]) -> Optional[DirectoryUser]:
        """First user (by user_id) whose role matches any name case-insensitively"""

    @abstractmethod
    def list_role_names(self) -> List[str]: ...

    @abstractmethod
    def upsert_user(self, user: DirectoryUser) -> DirectoryUser:
        """Used by seeding scripts; the engine never writes the directory"""


class ApprovalStore(ABC):
    """Bundle of repositories sharing one transactional backend"""

    templates: TemplateRepository
    requests: RequestRepository
    ledger: LedgerRepository
    audit: AuditRepository
    directory: DirectoryRepository

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """All writes inside commit together or not at all"""

    @abstractmethod
    def health_check(self) -> Dict[str, Any]: ...


def to_storage(value: Any) -> Any:
    """Serialize an update value for storage; nested models become plain dicts, enums their values"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_storage(item) for item in value]
    if isinstance(value, dict):
        return {key: to_storage(item) for key, item in value.items()}
    return value
