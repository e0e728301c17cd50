"""In-memory approval store

Implements the repository interfaces over plain dictionaries so the engine can
be exercised deterministically without a database. Documents are stored in
their serialized form, exactly like the Mongo repositories, and every read
validates a fresh model.

Transactions take a re-entrant lock and snapshot all tables; any exception
inside the outermost transaction restores the snapshot.
"""
import copy
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from .base import (
    ApprovalStore, TemplateRepository, RequestRepository, LedgerRepository,
    AuditRepository, DirectoryRepository, to_storage
)
from ..domain.models import (
    WorkflowTemplate, ApprovalRequest, ApprovalLedgerEntry, AuditEvent, DirectoryUser
)
from ..domain.enums import RequestStatus, ApprovalStatus
from ..domain.errors import AlreadyExistsError


def _dump(model: Any) -> Dict[str, Any]:
    return to_storage(model.model_dump(mode="python"))


class _Tables:
    def __init__(self) -> None:
        self.templates: Dict[str, Dict[str, Any]] = {}
        self.requests: Dict[str, Dict[str, Any]] = {}
        self.ledger: Dict[str, Dict[str, Any]] = {}
        self.audit: List[Dict[str, Any]] = []
        self.users: Dict[str, Dict[str, Any]] = {}


class _MemoryRepository:
    def __init__(self, store: "InMemoryStore"):
        self._store = store

    @property
    def _lock(self) -> threading.RLock:
        return self._store.lock

    @property
    def _tables(self) -> _Tables:
        return self._store.tables


class InMemoryTemplateRepository(_MemoryRepository, TemplateRepository):

    def create(self, template: WorkflowTemplate) -> WorkflowTemplate:
        with self._lock:
            if template.template_id in self._tables.templates:
                raise AlreadyExistsError(f"Template {template.template_id} already exists")
            self._tables.templates[template.template_id] = _dump(template)
            return template

    def get(self, template_id: str) -> Optional[WorkflowTemplate]:
        with self._lock:
            doc = self._tables.templates.get(template_id)
            return WorkflowTemplate.model_validate(copy.deepcopy(doc)) if doc else None

    def update(self, template_id: str, updates: Dict[str, Any]) -> Optional[WorkflowTemplate]:
        with self._lock:
            doc = self._tables.templates.get(template_id)
            if doc is None:
                return None
            doc.update(to_storage(updates))
            return WorkflowTemplate.model_validate(copy.deepcopy(doc))

    def update_if_active(
        self, template_id: str, expected_active: bool, updates: Dict[str, Any]
    ) -> Optional[WorkflowTemplate]:
        with self._lock:
            doc = self._tables.templates.get(template_id)
            if doc is None or doc.get("is_active") != expected_active:
                return None
            doc.update(to_storage(updates))
            return WorkflowTemplate.model_validate(copy.deepcopy(doc))

    def list_templates(self, active_only: bool = False) -> List[WorkflowTemplate]:
        with self._lock:
            docs = [
                doc for doc in self._tables.templates.values()
                if not active_only or doc.get("is_active")
            ]
            docs.sort(key=lambda d: d["created_at"], reverse=True)
            return [WorkflowTemplate.model_validate(copy.deepcopy(doc)) for doc in docs]


class InMemoryRequestRepository(_MemoryRepository, RequestRepository):

    def create(self, request: ApprovalRequest) -> ApprovalRequest:
        with self._lock:
            if request.request_id in self._tables.requests:
                raise AlreadyExistsError(f"Request {request.request_id} already exists")
            self._tables.requests[request.request_id] = _dump(request)
            return request

    def get(self, request_id: str) -> Optional[ApprovalRequest]:
        with self._lock:
            doc = self._tables.requests.get(request_id)
            return ApprovalRequest.model_validate(copy.deepcopy(doc)) if doc else None

    def get_many(self, request_ids: Iterable[str]) -> Dict[str, ApprovalRequest]:
        with self._lock:
            found = {}
            for request_id in set(request_ids):
                doc = self._tables.requests.get(request_id)
                if doc:
                    found[request_id] = ApprovalRequest.model_validate(copy.deepcopy(doc))
            return found

    def update_if(
        self,
        request_id: str,
        expected_statuses: Sequence[RequestStatus],
        updates: Dict[str, Any],
        expected_step: Optional[int] = None,
    ) -> bool:
        with self._lock:
            doc = self._tables.requests.get(request_id)
            if doc is None or doc["status"] not in {status.value for status in expected_statuses}:
                return False
            if expected_step is not None and doc["current_step"] != expected_step:
                return False
            doc.update(to_storage(updates))
            return True

    def _matching(self, initiator_id: Optional[str], status: Optional[RequestStatus]) -> List[Dict[str, Any]]:
        return [
            doc for doc in self._tables.requests.values()
            if (not initiator_id or doc["initiator_id"] == initiator_id)
            and (not status or doc["status"] == status.value)
        ]

    def list_requests(
        self,
        initiator_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[ApprovalRequest]:
        with self._lock:
            docs = self._matching(initiator_id, status)
            docs.sort(key=lambda d: d["created_at"], reverse=True)
            docs = docs[skip:skip + limit] if limit else docs[skip:]
            return [ApprovalRequest.model_validate(copy.deepcopy(doc)) for doc in docs]

    def count_requests(self, initiator_id: Optional[str] = None, status: Optional[RequestStatus] = None) -> int:
        with self._lock:
            return len(self._matching(initiator_id, status))


class InMemoryLedgerRepository(_MemoryRepository, LedgerRepository):

    def create_entries(self, entries: List[ApprovalLedgerEntry]) -> List[ApprovalLedgerEntry]:
        with self._lock:
            for entry in entries:
                duplicate = any(
                    doc["request_id"] == entry.request_id and doc["step_index"] == entry.step_index
                    for doc in self._tables.ledger.values()
                )
                if duplicate or entry.entry_id in self._tables.ledger:
                    raise AlreadyExistsError(
                        f"Ledger entry for request {entry.request_id} step {entry.step_index} already exists"
                    )
                self._tables.ledger[entry.entry_id] = _dump(entry)
            return entries

    def _entries(self, request_id: str) -> List[ApprovalLedgerEntry]:
        docs = [doc for doc in self._tables.ledger.values() if doc["request_id"] == request_id]
        docs.sort(key=lambda d: d["step_index"])
        return [ApprovalLedgerEntry.model_validate(copy.deepcopy(doc)) for doc in docs]

    def get_entries(self, request_id: str) -> List[ApprovalLedgerEntry]:
        with self._lock:
            return self._entries(request_id)

    def get_entries_for_requests(self, request_ids: Iterable[str]) -> Dict[str, List[ApprovalLedgerEntry]]:
        with self._lock:
            return {request_id: self._entries(request_id) for request_id in set(request_ids)}

    def get_entry_at_step(self, request_id: str, step_index: int) -> Optional[ApprovalLedgerEntry]:
        with self._lock:
            for doc in self._tables.ledger.values():
                if doc["request_id"] == request_id and doc["step_index"] == step_index:
                    return ApprovalLedgerEntry.model_validate(copy.deepcopy(doc))
            return None

    def mark_decided(
        self,
        entry_id: str,
        status: ApprovalStatus,
        comment: Optional[str],
        decided_by: str,
        decided_at: datetime,
    ) -> bool:
        with self._lock:
            doc = self._tables.ledger.get(entry_id)
            if doc is None or doc["status"] != ApprovalStatus.PENDING.value:
                return False
            doc.update({
                "status": status.value,
                "comment": comment,
                "decided_by": decided_by,
                "updated_at": decided_at,
            })
            return True

    def list_pending_for_approver(self, approver_id: str) -> List[ApprovalLedgerEntry]:
        with self._lock:
            docs = [
                doc for doc in self._tables.ledger.values()
                if doc["approver_id"] == approver_id and doc["status"] == ApprovalStatus.PENDING.value
            ]
            docs.sort(key=lambda d: d["created_at"], reverse=True)
            return [ApprovalLedgerEntry.model_validate(copy.deepcopy(doc)) for doc in docs]


class InMemoryAuditRepository(_MemoryRepository, AuditRepository):

    def append(self, event: AuditEvent) -> AuditEvent:
        with self._lock:
            self._tables.audit.append(_dump(event))
            return event

    def list_for_request(self, request_id: str) -> List[AuditEvent]:
        with self._lock:
            indexed = [
                (position, doc) for position, doc in enumerate(self._tables.audit)
                if doc["request_id"] == request_id
            ]
            indexed.sort(key=lambda item: (item[1]["created_at"], item[0]), reverse=True)
            return [AuditEvent.model_validate(copy.deepcopy(doc)) for _, doc in indexed]

    def count_for_request(self, request_id: str) -> int:
        with self._lock:
            return sum(1 for doc in self._tables.audit if doc["request_id"] == request_id)


class InMemoryDirectoryRepository(_MemoryRepository, DirectoryRepository):

    def get_user(self, user_id: str) -> Optional[DirectoryUser]:
        with self._lock:
            doc = self._tables.users.get(user_id)
            return DirectoryUser.model_validate(copy.deepcopy(doc)) if doc else None

    def find_first_with_role(self, role_names: Sequence[str]) -> Optional[DirectoryUser]:
        wanted = {name.lower() for name in role_names}
        with self._lock:
            for user_id in sorted(self._tables.users):
                doc = self._tables.users[user_id]
                if doc.get("role_name") and doc["role_name"].lower() in wanted:
                    return DirectoryUser.model_validate(copy.deepcopy(doc))
            return None

    def list_role_names(self) -> List[str]:
        with self._lock:
            return sorted({doc["role_name"] for doc in self._tables.users.values() if doc.get("role_name")})

    def upsert_user(self, user: DirectoryUser) -> DirectoryUser:
        with self._lock:
            self._tables.users[user.user_id] = _dump(user)
            return user


class InMemoryStore(ApprovalStore):
    """Dictionary-backed store with snapshot rollback"""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.tables = _Tables()
        self._depth = 0

        self.templates = InMemoryTemplateRepository(self)
        self.requests = InMemoryRequestRepository(self)
        self.ledger = InMemoryLedgerRepository(self)
        self.audit = InMemoryAuditRepository(self)
        self.directory = InMemoryDirectoryRepository(self)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self.lock:
            outermost = self._depth == 0
            snapshot = copy.deepcopy(self.tables) if outermost else None
            self._depth += 1
            try:
                yield
            except BaseException:
                if outermost:
                    self.tables = snapshot
                raise
            finally:
                self._depth -= 1

    def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "database": "memory", "connection": "ok"}
