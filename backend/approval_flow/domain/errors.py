"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, List, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400
    retryable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Authentication & Authorization Errors
class AuthenticationError(DomainError):
    """Token missing, invalid, or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class PermissionDeniedError(DomainError):
    """Actor is not allowed to perform the action"""
    error_code = "PERMISSION_DENIED"
    http_status = 403


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400

    @property
    def errors(self) -> List[str]:
        return list(self.details.get("errors", []))


class TemplateValidationError(ValidationError):
    """Template or step definitions are malformed"""
    error_code = "TEMPLATE_VALIDATION_ERROR"


class WorkflowValidationError(ValidationError):
    """One or more steps cannot be resolved to an approver for the initiator"""
    error_code = "WORKFLOW_VALIDATION_ERROR"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class TemplateNotFoundError(NotFoundError):
    """Workflow template not found"""
    error_code = "TEMPLATE_NOT_FOUND"


class RequestNotFoundError(NotFoundError):
    """Approval request not found"""
    error_code = "REQUEST_NOT_FOUND"


class LedgerEntryNotFoundError(NotFoundError):
    """Approval ledger entry not found"""
    error_code = "LEDGER_ENTRY_NOT_FOUND"


class UserNotFoundError(NotFoundError):
    """User not found in directory"""
    error_code = "USER_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict (e.g., concurrent modification)"""
    error_code = "CONFLICT"
    http_status = 409


class ConcurrencyError(ConflictError):
    """Conditional update lost to a concurrent caller"""
    error_code = "CONCURRENCY_CONFLICT"


class InvalidStateError(ConflictError):
    """Action not valid for current state"""
    error_code = "INVALID_STATE"


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    error_code = "ALREADY_EXISTS"


# Infrastructure Errors
class InternalError(DomainError):
    """Persistence or transaction failure; safe to retry"""
    error_code = "INTERNAL_ERROR"
    http_status = 500
    retryable = True
