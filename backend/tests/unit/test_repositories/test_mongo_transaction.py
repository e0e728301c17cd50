"""Tests for Mongo transaction error mapping, against a stubbed client"""
from contextlib import nullcontext

import pytest
from pymongo.errors import OperationFailure, PyMongoError

from approval_flow.domain.errors import ConcurrencyError, InternalError, InvalidStateError
from approval_flow.repositories.mongo_client import mongo_transaction, current_session


class FakeSession:
    def start_transaction(self):
        return nullcontext()


class FakeClient:
    def __init__(self):
        self.session = FakeSession()

    def start_session(self):
        return nullcontext(self.session)


@pytest.fixture
def client():
    return FakeClient()


def test_session_is_visible_inside_transaction(client):
    with mongo_transaction(client, use_transactions=True) as session:
        assert session is client.session
        assert current_session() is client.session
        with mongo_transaction(client, use_transactions=True) as nested:
            assert nested is client.session
    assert current_session() is None


def test_write_conflict_is_a_concurrency_error(client):
    with pytest.raises(ConcurrencyError) as exc_info:
        with mongo_transaction(client, use_transactions=True):
            raise OperationFailure("WriteConflict error", code=112)
    assert exc_info.value.http_status == 409
    assert current_session() is None


def test_transient_transaction_label_is_a_concurrency_error(client):
    with pytest.raises(ConcurrencyError):
        with mongo_transaction(client, use_transactions=True):
            raise PyMongoError("conflict", error_labels=["TransientTransactionError"])


def test_other_failures_are_retryable_internal_errors(client):
    with pytest.raises(InternalError) as exc_info:
        with mongo_transaction(client, use_transactions=True):
            raise OperationFailure("disk full", code=14031)
    assert exc_info.value.retryable


def test_failures_without_transactions_are_internal_errors(client):
    with pytest.raises(InternalError):
        with mongo_transaction(client, use_transactions=False) as session:
            assert session is None
            raise PyMongoError("connection reset")


def test_domain_errors_pass_through(client):
    with pytest.raises(InvalidStateError):
        with mongo_transaction(client, use_transactions=True):
            raise InvalidStateError("closed")
