"""Approval Engine - Request state machine and its collaborators"""
from .engine import ApprovalEngine
from .assignment_resolver import AssignmentResolver
from .workflow_validator import WorkflowValidator
from .permission_guard import PermissionGuard
from .audit_writer import AuditWriter

__all__ = [
    "ApprovalEngine",
    "AssignmentResolver",
    "WorkflowValidator",
    "PermissionGuard",
    "AuditWriter",
]
