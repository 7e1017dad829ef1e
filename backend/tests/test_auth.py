"""Tests for Supabase JWT verification."""
import time
from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import jwt
from sqlalchemy.orm import Session
from starlette.requests import Request

from readtrack.core import auth
from readtrack.core.config import settings

SECRET = "test-secret"
ISSUER = "https://project.supabase.co/auth/v1"


@pytest.fixture
def supabase_env(monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", SECRET)
    monkeypatch.setattr(settings, "SUPABASE_JWT_ISS", ISSUER)
    monkeypatch.setattr(settings, "SUPABASE_JWT_AUD", "authenticated")


def _token(**claims) -> str:
    payload = {
        "sub": str(uuid4()),
        "email": "reader@example.com",
        "aud": "authenticated",
        "iss": ISSUER,
        "exp": int(time.time()) + 3600,
    }
    payload.update(claims)
    return jwt.encode(payload, SECRET, algorithm="HS256")


def _request(authorization=None) -> Request:
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/api/insights/dna",
        "query_string": b"",
        "headers": headers,
    })


def test_valid_token_resolves_user(db: Session, supabase_env):
    sub = str(uuid4())
    user = auth.get_current_user(_request(f"Bearer {_token(sub=sub)}"), db)
    assert user.auth_user_id == sub
    assert user.email == "reader@example.com"


def test_missing_header_is_unauthorized(db: Session, supabase_env):
    with pytest.raises(HTTPException) as exc:
        auth.get_current_user(_request(), db)
    assert exc.value.status_code == 401


def test_wrong_scheme_is_unauthorized(db: Session, supabase_env):
    with pytest.raises(HTTPException) as exc:
        auth.get_current_user(_request(f"Token {_token()}"), db)
    assert exc.value.status_code == 401


def test_wrong_audience_is_unauthorized(db: Session, supabase_env):
    with pytest.raises(HTTPException) as exc:
        auth.get_current_user(_request(f"Bearer {_token(aud='anon')}"), db)
    assert exc.value.detail == "Token validation failed"


def test_missing_configuration_is_a_server_error(db: Session, monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_URL", "")
    with pytest.raises(HTTPException) as exc:
        auth.get_current_user(_request(f"Bearer {_token()}"), db)
    assert exc.value.status_code == 500
