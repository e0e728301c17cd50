"""Tests for bearer token validation"""
import time

import jwt
import pytest

from approval_flow.domain.errors import AuthenticationError
from approval_flow.utils.jwt import JWTValidator, create_token


@pytest.fixture
def validator(settings):
    return JWTValidator(settings)


def test_actor_context_from_claims(validator, settings):
    token = create_token("F", "Fin Ance", ["Finance"], settings=settings)

    actor = validator.get_actor_context(f"Bearer {token}")
    assert actor.user_id == "F"
    assert actor.display_name == "Fin Ance"
    assert actor.roles == ["Finance"]


def test_single_role_string(validator, settings):
    token = create_token("ADM", settings=settings, extra_claims={"roles": "Admin"})
    assert validator.get_actor_context(token).roles == ["Admin"]


def test_display_name_defaults_to_user_id(validator, settings):
    assert validator.get_actor_context(create_token("U", settings=settings)).display_name == "U"


def test_wrong_secret(validator):
    token = jwt.encode({"sub": "U"}, "another-secret", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        validator.get_actor_context(token)


def test_expired(validator, settings):
    token = create_token("U", settings=settings, extra_claims={"exp": int(time.time()) - 60})
    with pytest.raises(AuthenticationError, match="expired"):
        validator.get_actor_context(token)


def test_missing_subject(validator, settings):
    token = jwt.encode({"name": "Nobody"}, settings.jwt_secret, algorithm="HS256")
    with pytest.raises(AuthenticationError):
        validator.get_actor_context(token)


@pytest.mark.parametrize("token", ["", "Bearer ", "not-a-jwt"])
def test_malformed(validator, token):
    with pytest.raises(AuthenticationError):
        validator.get_actor_context(token)


def test_invalid_roles_claim(validator, settings):
    token = create_token("U", settings=settings, extra_claims={"roles": {"admin": True}})
    with pytest.raises(AuthenticationError):
        validator.get_actor_context(token)
