"""Tests for Settings"""
import pytest
from pydantic import ValidationError

from approval_flow.config.settings import DEFAULT_JWT_SECRET, Settings


def test_production_refuses_default_secret():
    with pytest.raises(ValidationError) as exc_info:
        Settings(environment="production", jwt_secret=DEFAULT_JWT_SECRET)
    assert "JWT_SECRET" in str(exc_info.value)


def test_production_check_ignores_case():
    with pytest.raises(ValidationError):
        Settings(environment="Production", jwt_secret=DEFAULT_JWT_SECRET)


def test_production_with_real_secret():
    settings = Settings(environment="production", jwt_secret="a-long-random-value")
    assert settings.is_production


def test_development_keeps_default_secret():
    settings = Settings(environment="development", jwt_secret=DEFAULT_JWT_SECRET)
    assert not settings.is_production
    assert settings.jwt_secret == DEFAULT_JWT_SECRET


def test_cors_origins_list():
    settings = Settings(cors_origins="http://a.test, http://b.test,")
    assert settings.cors_origins_list == ["http://a.test", "http://b.test"]
