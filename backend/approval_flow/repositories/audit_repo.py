"""Audit Repository - Data access for audit events"""
from typing import Any, Dict, List
from pymongo.collection import Collection
from pymongo import DESCENDING

from .base import AuditRepository, to_storage
from .mongo_client import current_session
from ..domain.models import AuditEvent
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MongoAuditRepository(AuditRepository):
    """Repository for audit event operations (append-only)"""

    def __init__(self, collection: Collection):
        self._audit_events = collection

    @staticmethod
    def _from_doc(doc: Dict[str, Any]) -> AuditEvent:
        doc.pop("_id", None)
        return AuditEvent.model_validate(doc)

    def append(self, event: AuditEvent) -> AuditEvent:
        """Create an audit event (append-only)"""
        # _id is left to the driver: ObjectIds grow monotonically and break timestamp ties
        doc = to_storage(event.model_dump(mode="python"))

        self._audit_events.insert_one(doc, session=current_session())
        logger.info(
            f"Created audit event: {event.action.value}",
            extra={
                "request_id": event.request_id,
                "actor_id": event.actor_id,
                "action": event.action.value
            }
        )
        return event

    def list_for_request(self, request_id: str) -> List[AuditEvent]:
        """Get audit events for a request, newest first"""
        cursor = self._audit_events.find(
            {"request_id": request_id}, session=current_session()
        ).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
        return [self._from_doc(doc) for doc in cursor]

    def count_for_request(self, request_id: str) -> int:
        """Count audit events for a request"""
        return self._audit_events.count_documents({"request_id": request_id}, session=current_session())
