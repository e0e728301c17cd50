"""Tests for the error hierarchy"""
import pytest

from approval_flow.domain.errors import (
    AuthenticationError, ConcurrencyError, ConflictError, DomainError, InternalError,
    InvalidStateError, PermissionDeniedError, RequestNotFoundError, WorkflowValidationError
)


def test_to_dict_envelope():
    error = RequestNotFoundError("Request REQ-1 not found", details={"request_id": "REQ-1"})
    assert error.to_dict() == {
        "error": {
            "code": "REQUEST_NOT_FOUND",
            "message": "Request REQ-1 not found",
            "details": {"request_id": "REQ-1"},
        }
    }


def test_custom_error_code():
    assert DomainError("boom", error_code="CUSTOM").to_dict()["error"]["code"] == "CUSTOM"


@pytest.mark.parametrize("error_class, status", [
    (AuthenticationError, 401),
    (PermissionDeniedError, 403),
    (RequestNotFoundError, 404),
    (WorkflowValidationError, 400),
    (InvalidStateError, 409),
    (ConcurrencyError, 409),
    (InternalError, 500),
])
def test_http_status(error_class, status):
    assert error_class("x").http_status == status


def test_conflicts_share_a_base():
    assert issubclass(ConcurrencyError, ConflictError)
    assert issubclass(InvalidStateError, ConflictError)


def test_only_internal_errors_are_retryable():
    assert InternalError("x").retryable
    assert not ConcurrencyError("x").retryable


def test_validation_errors_list():
    error = WorkflowValidationError("bad", details={"errors": ["Step 1: nope"]})
    assert error.errors == ["Step 1: nope"]
