"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Args:
        prefix: Optional prefix for the ID (e.g., 'REQ', 'TPL', 'APR')

    Returns:
        Unique ID string

    Examples:
        >>> generate_id('REQ')
        'REQ-a1b2c3d4e5f6'
        >>> generate_id()
        'a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def generate_template_id() -> str:
    """Generate workflow template ID"""
    return generate_id("TPL")


def generate_request_id() -> str:
    """Generate approval request ID"""
    return generate_id("REQ")


def generate_ledger_entry_id() -> str:
    """Generate approval ledger entry ID"""
    return generate_id("APR")


def generate_audit_event_id() -> str:
    """Generate audit event ID"""
    return generate_id("AUD")


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
