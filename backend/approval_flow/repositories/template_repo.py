"""Template Repository - Data access for workflow templates"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from .base import TemplateRepository, to_storage
from .mongo_client import current_session
from ..domain.models import WorkflowTemplate
from ..domain.errors import AlreadyExistsError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _to_doc(template: WorkflowTemplate) -> Dict[str, Any]:
    # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
    doc = template.model_dump(mode="python")
    doc["steps"] = [step.model_dump(mode="json") for step in template.steps]
    doc["_id"] = template.template_id
    return doc


def _from_doc(doc: Dict[str, Any]) -> WorkflowTemplate:
    doc.pop("_id", None)
    return WorkflowTemplate.model_validate(doc)


class MongoTemplateRepository(TemplateRepository):
    """Repository for workflow template operations"""

    def __init__(self, collection: Collection):
        self._templates = collection

    def create(self, template: WorkflowTemplate) -> WorkflowTemplate:
        """Create a new workflow template"""
        try:
            self._templates.insert_one(_to_doc(template), session=current_session())
        except DuplicateKeyError:
            raise AlreadyExistsError(f"Template {template.template_id} already exists")
        logger.info(f"Created template: {template.template_id}", extra={"template_id": template.template_id})
        return template

    def get(self, template_id: str) -> Optional[WorkflowTemplate]:
        """Get template by ID"""
        doc = self._templates.find_one({"template_id": template_id}, session=current_session())
        return _from_doc(doc) if doc else None

    def update(self, template_id: str, updates: Dict[str, Any]) -> Optional[WorkflowTemplate]:
        """Update template fields"""
        result = self._templates.find_one_and_update(
            {"template_id": template_id},
            {"$set": to_storage(updates)},
            return_document=ReturnDocument.AFTER,
            session=current_session(),
        )
        if result is None:
            return None
        logger.info(f"Updated template: {template_id}", extra={"template_id": template_id})
        return _from_doc(result)

    def update_if_active(
        self, template_id: str, expected_active: bool, updates: Dict[str, Any]
    ) -> Optional[WorkflowTemplate]:
        """Archive/restore flip guarded by the current active flag"""
        result = self._templates.find_one_and_update(
            {"template_id": template_id, "is_active": expected_active},
            {"$set": to_storage(updates)},
            return_document=ReturnDocument.AFTER,
            session=current_session(),
        )
        return _from_doc(result) if result else None

    def list_templates(self, active_only: bool = False) -> List[WorkflowTemplate]:
        """List templates, newest first"""
        query: Dict[str, Any] = {"is_active": True} if active_only else {}
        cursor = self._templates.find(query, session=current_session()).sort("created_at", DESCENDING)
        return [_from_doc(doc) for doc in cursor]
