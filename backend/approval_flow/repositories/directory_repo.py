"""Directory Repository - Read access to organization users"""
import re
from typing import Any, Dict, List, Optional, Sequence
from pymongo.collection import Collection
from pymongo import ASCENDING

from .base import DirectoryRepository
from .mongo_client import current_session
from ..domain.models import DirectoryUser
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MongoDirectoryRepository(DirectoryRepository):
    """Repository over the directory users collection"""

    def __init__(self, collection: Collection):
        self._users = collection

    @staticmethod
    def _from_doc(doc: Dict[str, Any]) -> DirectoryUser:
        doc.pop("_id", None)
        return DirectoryUser.model_validate(doc)

    def get_user(self, user_id: str) -> Optional[DirectoryUser]:
        """Get user by ID"""
        doc = self._users.find_one({"user_id": user_id}, session=current_session())
        return self._from_doc(doc) if doc else None

    def find_first_with_role(self, role_names: Sequence[str]) -> Optional[DirectoryUser]:
        """First user by user_id holding any of the roles (case-insensitive)"""
        if not role_names:
            return None
        patterns = [
            re.compile(f"^{re.escape(name)}$", re.IGNORECASE) for name in role_names
        ]
        doc = self._users.find_one(
            {"role_name": {"$in": patterns}},
            sort=[("user_id", ASCENDING)],
            session=current_session(),
        )
        return self._from_doc(doc) if doc else None

    def list_role_names(self) -> List[str]:
        """Distinct role names held by at least one user"""
        names = self._users.distinct("role_name", session=current_session())
        return sorted(name for name in names if name)

    def upsert_user(self, user: DirectoryUser) -> DirectoryUser:
        """Insert or replace a directory user"""
        doc = user.model_dump()
        doc["_id"] = user.user_id
        self._users.replace_one({"user_id": user.user_id}, doc, upsert=True, session=current_session())
        logger.info(f"Upserted directory user: {user.user_id}", extra={"user_id": user.user_id})
        return user
