"""MongoDB-backed approval store"""
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database

from .base import ApprovalStore
from .mongo_client import get_client, get_database, mongo_transaction, health_check
from .template_repo import MongoTemplateRepository
from .request_repo import MongoRequestRepository, MongoLedgerRepository
from .audit_repo import MongoAuditRepository
from .directory_repo import MongoDirectoryRepository
from ..config.settings import settings


class MongoStore(ApprovalStore):
    """All repositories over one MongoDB database"""

    def __init__(
        self,
        client: Optional[PyMongoClient] = None,
        database: Optional[Database] = None,
        use_transactions: Optional[bool] = None,
    ):
        self._client = client or get_client()
        self._db = database if database is not None else get_database()
        self._use_transactions = (
            settings.mongo_use_transactions if use_transactions is None else use_transactions
        )

        self.templates = MongoTemplateRepository(self._db["workflow_templates"])
        self.requests = MongoRequestRepository(self._db["approval_requests"])
        self.ledger = MongoLedgerRepository(self._db["approval_ledger"])
        self.audit = MongoAuditRepository(self._db["audit_events"])
        self.directory = MongoDirectoryRepository(self._db["directory_users"])

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with mongo_transaction(self._client, self._use_transactions):
            yield

    def health_check(self) -> Dict[str, Any]:
        return health_check()
