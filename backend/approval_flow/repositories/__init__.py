"""Repository modules - Data access layer"""
from .base import (
    ApprovalStore,
    TemplateRepository,
    RequestRepository,
    LedgerRepository,
    AuditRepository,
    DirectoryRepository,
)
from .mongo_client import get_database, create_indexes, close_connection
from .mongo_store import MongoStore
from .memory_store import InMemoryStore

__all__ = [
    "ApprovalStore",
    "TemplateRepository",
    "RequestRepository",
    "LedgerRepository",
    "AuditRepository",
    "DirectoryRepository",
    "get_database",
    "create_indexes",
    "close_connection",
    "MongoStore",
    "InMemoryStore",
]
