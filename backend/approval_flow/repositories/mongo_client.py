"""MongoDB Client - Connection, Sessions and Collection Management"""
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, OperationFailure, PyMongoError

from ..config.settings import settings
from ..domain.errors import ConcurrencyError, InternalError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None

# Server error code for a transaction write conflict
WRITE_CONFLICT_CODE = 112

# Session of the transaction active in the current context, if any
_session_var: ContextVar[Optional[ClientSession]] = ContextVar("mongo_session", default=None)


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
            tz_aware=True,
        )
        try:
            _client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            raise
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def current_session() -> Optional[ClientSession]:
    """Session to pass to every collection call made inside a transaction"""
    return _session_var.get()


def close_connection() -> None:
    """Close MongoDB connection"""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


def create_indexes(db: Optional[Database] = None) -> None:
    """Create all required indexes"""
    db = db if db is not None else get_database()
    logger.info("Creating MongoDB indexes...")

    templates = db["workflow_templates"]
    templates.create_index("template_id", unique=True)
    templates.create_index("is_active")
    templates.create_index("created_at", background=True)

    requests = db["approval_requests"]
    requests.create_index("request_id", unique=True)
    requests.create_index([("initiator_id", ASCENDING), ("created_at", DESCENDING)])
    requests.create_index("status")
    requests.create_index("created_at", background=True)

    ledger = db["approval_ledger"]
    ledger.create_index("entry_id", unique=True)
    # Exactly one entry per (request, step)
    ledger.create_index([("request_id", ASCENDING), ("step_index", ASCENDING)], unique=True)
    ledger.create_index([("approver_id", ASCENDING), ("status", ASCENDING)])

    audit_events = db["audit_events"]
    audit_events.create_index("event_id", unique=True)
    audit_events.create_index([("request_id", ASCENDING), ("created_at", DESCENDING)])

    users = db["directory_users"]
    users.create_index("user_id", unique=True)
    users.create_index("role_name")
    users.create_index("manager_id")

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        client = get_client()
        client.admin.command("ping")
        return {
            "status": "healthy",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": settings.mongo_db,
            "error": str(e)
        }


def is_write_conflict(error: PyMongoError) -> bool:
    """True when a concurrent transaction touched the same document first"""
    if isinstance(error, OperationFailure) and error.code == WRITE_CONFLICT_CODE:
        return True
    return error.has_error_label("TransientTransactionError")


@contextmanager
def mongo_transaction(client: PyMongoClient, use_transactions: bool) -> Iterator[Optional[ClientSession]]:
    """
    Run the enclosed writes in one multi-document transaction.

    Nested calls join the outer transaction. With ``use_transactions`` off
    (standalone mongod) writes are still issued, but atomicity rests on the
    conditional updates alone.
    """
    outer = _session_var.get()
    if outer is not None:
        yield outer
        return

    if not use_transactions:
        try:
            yield None
        except PyMongoError as e:
            logger.error(f"MongoDB write failed: {e}")
            raise InternalError("Storage operation failed", details={"reason": str(e)}) from e
        return

    try:
        with client.start_session() as session:
            with session.start_transaction():
                token = _session_var.set(session)
                try:
                    yield session
                finally:
                    _session_var.reset(token)
    except PyMongoError as e:
        if is_write_conflict(e):
            logger.warning(f"MongoDB transaction lost a write conflict: {e}")
            raise ConcurrencyError(
                "Request was modified concurrently", details={"reason": str(e)}
            ) from e
        logger.error(f"MongoDB transaction aborted: {e}")
        raise InternalError("Storage transaction failed", details={"reason": str(e)}) from e
