"""Tests for settings validation."""

from __future__ import annotations

import pytest

from backend.config import Settings, validate_settings
from engine.kernel.errors import StoreUnavailable


def make_settings(**overrides):
    s = Settings()
    for key, value in overrides.items():
        setattr(s, key, value)
    return s


def test_memory_store_is_valid():
    validate_settings(make_settings(STORE_BACKEND="memory", JWT_SECRET="x"))


def test_unknown_backend():
    with pytest.raises(StoreUnavailable):
        validate_settings(make_settings(STORE_BACKEND="sqlite"))


def test_postgres_requires_database_url():
    with pytest.raises(StoreUnavailable):
        validate_settings(make_settings(STORE_BACKEND="postgres", DATABASE_URL=""))


def test_production_requires_jwt_secret():
    with pytest.raises(RuntimeError):
        validate_settings(make_settings(STORE_BACKEND="memory", JWT_SECRET="", ENVIRONMENT="production"))


def test_profile_url(monkeypatch):
    monkeypatch.setenv("PUBLIC_URL", "https://epk.example.com/")
    assert Settings().profile_url("neon-echo") == "https://epk.example.com/neon-echo"


def test_idp_secret_falls_back_to_jwt_secret():
    assert make_settings(IDP_JWT_SECRET="", JWT_SECRET="shared").idp_secret == "shared"
