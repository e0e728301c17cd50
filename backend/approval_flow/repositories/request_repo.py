"""Request Repository - Data access for approval requests and ledger entries"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING

from .base import RequestRepository, LedgerRepository, to_storage
from .mongo_client import current_session
from ..domain.models import ApprovalRequest, ApprovalLedgerEntry
from ..domain.enums import RequestStatus, ApprovalStatus
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MongoRequestRepository(RequestRepository):
    """Repository for approval request operations"""

    def __init__(self, collection: Collection):
        self._requests = collection

    @staticmethod
    def _from_doc(doc: Dict[str, Any]) -> ApprovalRequest:
        doc.pop("_id", None)
        return ApprovalRequest.model_validate(doc)

    @staticmethod
    def _query(initiator_id: Optional[str], status: Optional[RequestStatus]) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if initiator_id:
            query["initiator_id"] = initiator_id
        if status:
            query["status"] = status.value
        return query

    def create(self, request: ApprovalRequest) -> ApprovalRequest:
        """Create a new request"""
        doc = to_storage(request.model_dump(mode="python"))
        doc["_id"] = request.request_id

        self._requests.insert_one(doc, session=current_session())
        logger.info(f"Created request: {request.request_id}", extra={"request_id": request.request_id})
        return request

    def get(self, request_id: str) -> Optional[ApprovalRequest]:
        """Get request by ID"""
        doc = self._requests.find_one({"request_id": request_id}, session=current_session())
        return self._from_doc(doc) if doc else None

    def get_many(self, request_ids: Iterable[str]) -> Dict[str, ApprovalRequest]:
        """Get several requests keyed by ID"""
        ids = list(set(request_ids))
        if not ids:
            return {}
        cursor = self._requests.find({"request_id": {"$in": ids}}, session=current_session())
        requests = [self._from_doc(doc) for doc in cursor]
        return {request.request_id: request for request in requests}

    def update_if(
        self,
        request_id: str,
        expected_statuses: Sequence[RequestStatus],
        updates: Dict[str, Any],
        expected_step: Optional[int] = None,
    ) -> bool:
        """Update only while status (and optionally current step) still match"""
        filter_query: Dict[str, Any] = {
            "request_id": request_id,
            "status": {"$in": [status.value for status in expected_statuses]},
        }
        if expected_step is not None:
            filter_query["current_step"] = expected_step

        result = self._requests.update_one(
            filter_query,
            {"$set": to_storage(updates)},
            session=current_session(),
        )
        if result.matched_count == 0:
            logger.warning(
                f"Conditional update on request {request_id} matched nothing",
                extra={"request_id": request_id}
            )
            return False
        return True

    def list_requests(
        self,
        initiator_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[ApprovalRequest]:
        """List requests with filters, newest first"""
        cursor = self._requests.find(
            self._query(initiator_id, status), session=current_session()
        ).sort("created_at", DESCENDING).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [self._from_doc(doc) for doc in cursor]

    def count_requests(self, initiator_id: Optional[str] = None, status: Optional[RequestStatus] = None) -> int:
        """Count requests with filters"""
        return self._requests.count_documents(self._query(initiator_id, status), session=current_session())


class MongoLedgerRepository(LedgerRepository):
    """Repository for approval ledger entries"""

    def __init__(self, collection: Collection):
        self._ledger = collection

    @staticmethod
    def _from_doc(doc: Dict[str, Any]) -> ApprovalLedgerEntry:
        doc.pop("_id", None)
        return ApprovalLedgerEntry.model_validate(doc)

    def create_entries(self, entries: List[ApprovalLedgerEntry]) -> List[ApprovalLedgerEntry]:
        """Create all ledger entries of a request"""
        if not entries:
            return []

        docs = []
        for entry in entries:
            doc = to_storage(entry.model_dump(mode="python"))
            doc["_id"] = entry.entry_id
            docs.append(doc)

        self._ledger.insert_many(docs, session=current_session())
        logger.info(
            f"Created {len(entries)} ledger entries",
            extra={"request_id": entries[0].request_id}
        )
        return entries

    def get_entries(self, request_id: str) -> List[ApprovalLedgerEntry]:
        """Get all entries of a request ordered by step"""
        cursor = self._ledger.find(
            {"request_id": request_id}, session=current_session()
        ).sort("step_index", ASCENDING)
        return [self._from_doc(doc) for doc in cursor]

    def get_entries_for_requests(self, request_ids: Iterable[str]) -> Dict[str, List[ApprovalLedgerEntry]]:
        """Get entries for several requests keyed by request ID"""
        ids = list(set(request_ids))
        grouped: Dict[str, List[ApprovalLedgerEntry]] = {request_id: [] for request_id in ids}
        if not ids:
            return grouped
        cursor = self._ledger.find(
            {"request_id": {"$in": ids}}, session=current_session()
        ).sort([("request_id", ASCENDING), ("step_index", ASCENDING)])
        for doc in cursor:
            entry = self._from_doc(doc)
            grouped[entry.request_id].append(entry)
        return grouped

    def get_entry_at_step(self, request_id: str, step_index: int) -> Optional[ApprovalLedgerEntry]:
        """Get the entry for one step of a request"""
        doc = self._ledger.find_one(
            {"request_id": request_id, "step_index": step_index}, session=current_session()
        )
        return self._from_doc(doc) if doc else None

    def mark_decided(
        self,
        entry_id: str,
        status: ApprovalStatus,
        comment: Optional[str],
        decided_by: str,
        decided_at: datetime,
    ) -> bool:
        """Record a decision; the status filter serializes concurrent callers"""
        result = self._ledger.update_one(
            {"entry_id": entry_id, "status": ApprovalStatus.PENDING.value},
            {"$set": {
                "status": status.value,
                "comment": comment,
                "decided_by": decided_by,
                "updated_at": decided_at,
            }},
            session=current_session(),
        )
        if result.modified_count == 0:
            logger.warning(
                f"Ledger entry {entry_id} was no longer pending",
                extra={"entry_id": entry_id, "status": status.value}
            )
            return False
        return True

    def list_pending_for_approver(self, approver_id: str) -> List[ApprovalLedgerEntry]:
        """Pending entries bound to an approver, newest first"""
        cursor = self._ledger.find(
            {"approver_id": approver_id, "status": ApprovalStatus.PENDING.value},
            session=current_session(),
        ).sort("created_at", DESCENDING)
        return [self._from_doc(doc) for doc in cursor]
