"""Permission Guard - Authorization enforcement for request actions"""
from typing import Sequence

from ..domain.models import ApprovalRequest, ApprovalLedgerEntry, ActorContext
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PermissionGuard:
    """
    Permission enforcement for request operations

    Rules:
    - Only the approver bound to a step may decide it
    - An admin may decide any step, but only with an explicit override
    - Initiator, bound approvers and admins may view and comment
    - Initiator and admins may cancel
    """

    def __init__(self, admin_role_name: str = "Admin"):
        self.admin_role_name = admin_role_name

    def is_admin(self, actor: ActorContext) -> bool:
        """Check if actor holds the admin role"""
        return actor.has_role(self.admin_role_name)

    def can_decide(self, actor: ActorContext, entry: ApprovalLedgerEntry, override: bool = False) -> bool:
        """
        Check if actor can approve or reject the ledger entry

        Args:
            actor: Current user
            entry: Pending ledger entry of the current step
            override: Admin acting in place of the bound approver

        Returns:
            True if allowed
        """
        if actor.user_id == entry.approver_id:
            return True

        if override and self.is_admin(actor):
            logger.info(
                f"Admin {actor.user_id} overriding approver {entry.approver_id}",
                extra={"actor_id": actor.user_id, "entry_id": entry.entry_id}
            )
            return True

        return False

    def can_comment(
        self,
        actor: ActorContext,
        request: ApprovalRequest,
        entries: Sequence[ApprovalLedgerEntry]
    ) -> bool:
        """Check if actor can comment on the request"""
        if actor.user_id == request.initiator_id:
            return True
        if any(entry.approver_id == actor.user_id for entry in entries):
            return True
        return self.is_admin(actor)

    def can_cancel(self, actor: ActorContext, request: ApprovalRequest) -> bool:
        """Check if actor can cancel the request"""
        if actor.user_id == request.initiator_id:
            return True
        return self.is_admin(actor)

    def can_view(
        self,
        actor: ActorContext,
        request: ApprovalRequest,
        entries: Sequence[ApprovalLedgerEntry]
    ) -> bool:
        """Check if actor can read the request, its payload and audit trail"""
        return self.can_comment(actor, request, entries)
