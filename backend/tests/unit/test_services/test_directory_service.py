"""Tests for directory lookups"""
import pytest

from approval_flow.domain.errors import UserNotFoundError


def test_list_roles(directory_service):
    assert directory_service.list_roles() == ["Admin", "CEO", "Finance", "Manager"]


def test_user_hierarchy(directory_service):
    chain = directory_service.get_user_hierarchy("U")
    assert [node.user_id for node in chain] == ["U", "M", "CEO"]
    assert chain[0].email == "u@example.com"


def test_top_of_chain(directory_service):
    assert [node.user_id for node in directory_service.get_user_hierarchy("CEO")] == ["CEO"]


def test_unknown_user(directory_service):
    with pytest.raises(UserNotFoundError):
        directory_service.get_user_hierarchy("GHOST")
