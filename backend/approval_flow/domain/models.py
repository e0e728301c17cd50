"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from .enums import (
    AssigneeKind, DynamicRule, StepKind, RequestStatus, ApprovalStatus, AuditAction
)


# ============================================================================
# Identity
# ============================================================================

class ActorContext(BaseModel):
    """Current actor context from the verified bearer token"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="Directory user ID")
    display_name: str = Field("", description="User display name")
    roles: List[str] = Field(default_factory=list, description="Assigned roles")

    def has_role(self, role_name: str) -> bool:
        """Case-insensitive role membership check"""
        wanted = role_name.strip().lower()
        return any(role.strip().lower() == wanted for role in self.roles)


class DirectoryUser(BaseModel):
    """User as seen in the external organization directory (read-only)"""
    model_config = ConfigDict(extra="ignore")

    user_id: str
    display_name: str = ""
    email: Optional[str] = None
    manager_id: Optional[str] = Field(None, description="Direct manager user ID")
    role_name: Optional[str] = Field(None, description="Name of the role the user holds")


# ============================================================================
# Step Definitions
# ============================================================================

class RoleBasedAssignee(BaseModel):
    """Any holder of the named role"""
    model_config = ConfigDict(extra="forbid")

    kind: Literal["ROLE_BASED"] = "ROLE_BASED"
    role_name: str = Field(..., description="Role name, e.g. 'Finance'")

    @field_validator("role_name")
    @classmethod
    def _role_name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("role name must not be empty")
        return value


class DynamicAssignee(BaseModel):
    """A rule evaluated against the initiator"""
    model_config = ConfigDict(extra="forbid")

    kind: Literal["DYNAMIC"] = "DYNAMIC"
    rule: DynamicRule = Field(..., description="Dynamic rule identifier")


Assignee = Annotated[Union[RoleBasedAssignee, DynamicAssignee], Field(discriminator="kind")]


class StepDefinition(BaseModel):
    """
    One stage of a template.

    Three input shapes are accepted so that steps stored by earlier admin
    tooling keep loading:

    * nested:  {"assignee": {"kind": "ROLE_BASED", "role_name": "Finance"}, ...}
    * flat:    {"assigneeType": "DYNAMIC", "dynamicAssignee": "INITIATOR_SUPERVISOR", "actionLabel": ...}
    * legacy:  {"role": "Finance", "label": "Finance Review", "type": "approval"}
    """
    model_config = ConfigDict(extra="forbid")

    assignee: Assignee
    action_label: str = Field("", description="Label shown for the step's action")
    step_kind: StepKind = Field(StepKind.APPROVAL, description="approval or task")

    @model_validator(mode="before")
    @classmethod
    def _normalize_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "assignee" in data:
            return data

        if "assigneeType" in data:
            kind = data.get("assigneeType")
            if kind == AssigneeKind.DYNAMIC.value:
                assignee = {"kind": kind, "rule": data.get("dynamicAssignee")}
            else:
                assignee = {"kind": kind, "role_name": data.get("roleBasedAssignee")}
            return {
                "assignee": assignee,
                "action_label": data.get("actionLabel") or "",
                "step_kind": data.get("type") or StepKind.APPROVAL.value,
            }

        if "role" in data:
            return cls.legacy_dict(
                role=data.get("role"),
                label=data.get("label"),
                step_type=data.get("type"),
            )

        return data

    @staticmethod
    def legacy_dict(role: Any, label: Any, step_type: Any = None) -> Dict[str, Any]:
        """Convert a {role, label, type} step; the supervisor rule name doubles as a role"""
        if role == DynamicRule.INITIATOR_SUPERVISOR.value:
            assignee: Dict[str, Any] = {"kind": AssigneeKind.DYNAMIC.value, "rule": role}
        else:
            assignee = {"kind": AssigneeKind.ROLE_BASED.value, "role_name": role}
        return {
            "assignee": assignee,
            "action_label": label or "",
            "step_kind": step_type or StepKind.APPROVAL.value,
        }

    @property
    def assignee_kind(self) -> AssigneeKind:
        return AssigneeKind(self.assignee.kind)

    def describe_assignee(self) -> str:
        if isinstance(self.assignee, RoleBasedAssignee):
            return f'role "{self.assignee.role_name}"'
        return f'rule "{self.assignee.rule.value}"'


# ============================================================================
# Template
# ============================================================================

class WorkflowTemplate(BaseModel):
    """Named, ordered list of step definitions"""
    model_config = ConfigDict(extra="ignore")

    template_id: str
    name: str
    description: Optional[str] = None
    steps: List[StepDefinition] = Field(default_factory=list)
    is_active: bool = True
    archived_at: Optional[datetime] = None
    archive_reason: Optional[str] = None
    archived_by: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Request & Ledger
# ============================================================================

class ApprovalRequest(BaseModel):
    """One instantiation of a template"""
    model_config = ConfigDict(extra="ignore")

    request_id: str
    template_id: str
    template_name: str = ""
    initiator_id: str
    title: str
    description: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    status: RequestStatus = RequestStatus.PENDING
    current_step: int = 0
    step_count: int = 0
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_last_step(self) -> bool:
        return self.current_step >= self.step_count - 1


class ApprovalLedgerEntry(BaseModel):
    """Per-step approval record binding a resolved approver to a request step"""
    model_config = ConfigDict(extra="ignore")

    entry_id: str
    request_id: str
    step_index: int
    approver_id: str = Field(..., description="Approver resolved at request creation")
    action_label: str = ""
    step_kind: StepKind = StepKind.APPROVAL
    assignee: Assignee
    status: ApprovalStatus = ApprovalStatus.PENDING
    comment: Optional[str] = None
    decided_by: Optional[str] = Field(None, description="Actor who decided; differs from approver only on override")
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Audit
# ============================================================================

class AuditEvent(BaseModel):
    """Append-only audit trail entry"""
    model_config = ConfigDict(extra="ignore")

    event_id: str
    request_id: str
    actor_id: str
    action: AuditAction
    description: str
    detail: Optional[str] = None
    created_at: datetime


# ============================================================================
# Results & Views
# ============================================================================

class ValidationResult(BaseModel):
    """Outcome of resolving every step of a template for one initiator"""
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    approvers: List[Optional[str]] = Field(default_factory=list, description="Resolved approver per step")


class RequestDetail(BaseModel):
    """Request joined with its ledger entries"""
    request: ApprovalRequest
    approvals: List[ApprovalLedgerEntry] = Field(default_factory=list)


class PendingApproval(BaseModel):
    """Pending ledger entry joined with its request, initiator and template for display"""
    approval: ApprovalLedgerEntry
    request: ApprovalRequest
    initiator: Optional[DirectoryUser] = Field(None, description="Initiator as currently listed in the directory")
    template_name: str
    template_steps: List[StepDefinition] = Field(default_factory=list)


class RequestPage(BaseModel):
    """Paginated request listing"""
    requests: List[RequestDetail] = Field(default_factory=list)
    page: int
    limit: int
    total_pages: int
    total_count: int


class HierarchyNode(BaseModel):
    """One level of a user's management chain"""
    user_id: str
    display_name: str = ""
    email: Optional[str] = None
    role_name: Optional[str] = None
