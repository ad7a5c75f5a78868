"""Tests for bearer-token verification and the current-user dependency."""

from datetime import datetime, timedelta
from unittest.mock import patch

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from lifeos.api.auth import AuthNotConfigured, _jwks_url, decode_token, get_current_user
from lifeos.config import Settings
from lifeos.models.user import User

SECRET = "test-jwt-secret-with-at-least-32-bytes!"


def make_token(secret: str = SECRET, algorithm: str = "HS256", **claims) -> str:
    claims.setdefault("sub", "supabase-user-1")
    claims.setdefault("exp", datetime.utcnow() + timedelta(hours=1))
    return jwt.encode(claims, secret, algorithm=algorithm)


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.fixture
def settings():
    configured = Settings(supabase_jwt_secret=SECRET)
    with patch("lifeos.api.auth.get_settings", return_value=configured):
        yield configured


class TestDecodeToken:
    def test_hs256(self):
        claims = decode_token(make_token(email="a@example.com"), Settings(supabase_jwt_secret=SECRET))
        assert claims["sub"] == "supabase-user-1"
        assert claims["email"] == "a@example.com"

    def test_hs256_without_secret(self):
        with pytest.raises(AuthNotConfigured):
            decode_token(make_token(), Settings(supabase_jwt_secret=""))

    def test_unsupported_algorithm(self):
        with pytest.raises(jwt.InvalidAlgorithmError):
            decode_token(make_token(algorithm="HS512"), Settings(supabase_jwt_secret=SECRET))

    def test_jwks_url(self):
        url = _jwks_url(Settings(supabase_url="https://abc.supabase.co/"))
        assert url == "https://abc.supabase.co/auth/v1/.well-known/jwks.json"

    def test_jwks_url_placeholder(self):
        with pytest.raises(AuthNotConfigured):
            _jwks_url(Settings())


class TestGetCurrentUser:
    async def test_first_request_creates_user(self, db, settings):
        user = await get_current_user(bearer(make_token(email="new@example.com")))

        assert user.subject == "supabase-user-1"
        assert user.email == "new@example.com"
        assert await User.find(User.subject == "supabase-user-1").count() == 1

    async def test_existing_user_reused_and_email_synced(self, db, settings):
        first = await get_current_user(bearer(make_token(email="old@example.com")))
        second = await get_current_user(bearer(make_token(email="new@example.com")))

        assert second.id == first.id
        assert (await User.get(first.id)).email == "new@example.com"

    async def test_expired(self, db, settings):
        token = make_token(exp=datetime.utcnow() - timedelta(minutes=5))
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(bearer(token))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has expired"

    async def test_wrong_signature(self, db, settings):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(bearer(make_token(secret="another-secret-that-is-long-enough!!")))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Not authorized, token invalid"

    async def test_garbage_token(self, db, settings):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(bearer("not.a.jwt"))
        assert exc_info.value.status_code == 401

    async def test_missing_subject(self, db, settings):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(bearer(make_token(sub="")))
        assert exc_info.value.detail == "Token missing subject"

    async def test_not_configured(self, db):
        with patch("lifeos.api.auth.get_settings", return_value=Settings(supabase_jwt_secret=None)):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(bearer(make_token()))
        assert exc_info.value.status_code == 503
