"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class AssigneeKind(str, Enum):
    """How the approver of a step is determined"""
    ROLE_BASED = "ROLE_BASED"  # Any holder of a named role
    DYNAMIC = "DYNAMIC"        # A rule evaluated against the initiator


class DynamicRule(str, Enum):
    """Rules available to DYNAMIC steps"""
    INITIATOR_SUPERVISOR = "INITIATOR_SUPERVISOR"  # Initiator's direct manager


class StepKind(str, Enum):
    """Kind of work a step represents"""
    APPROVAL = "approval"
    TASK = "task"


class RequestStatus(str, Enum):
    """Lifecycle status of an approval request"""
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestStatus.APPROVED, RequestStatus.REJECTED, RequestStatus.CANCELLED)


# Statuses in which approve/reject/cancel may still act
OPEN_REQUEST_STATUSES = (RequestStatus.PENDING, RequestStatus.IN_PROGRESS)


class ApprovalStatus(str, Enum):
    """Status of a single ledger entry"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AuditAction(str, Enum):
    """Types of audit events"""
    CREATED = "CREATED"
    STEP_PROGRESSED = "STEP_PROGRESSED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMMENT_ADDED = "COMMENT_ADDED"
    CANCELLED = "CANCELLED"
