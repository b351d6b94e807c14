"""
Authentication tests

Token verification (local HS256 and backend lookup) and the 401 contract
on every data route.
"""

import time
from unittest.mock import MagicMock, patch

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.testclient import TestClient
from jose import jwt

from core.auth import get_user_context
from core.backend import BackendError, get_backend
from core.config import settings
from core.exceptions import APIException
from core.security import AUDIENCE, decode_access_token, user_context_from_claims
from main import app

SECRET = "test-jwt-secret-with-enough-length-123"


def _token(secret=SECRET, **overrides):
    claims = {
        "sub": "user-1",
        "aud": AUDIENCE,
        "email": "test@example.com",
        "exp": int(time.time()) + 3600,
        "user_metadata": {"full_name": "Test User", "timezone": "Europe/London"},
    }
    claims.update(overrides)
    return jwt.encode(claims, secret, algorithm="HS256")


def _bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestDecodeAccessToken:
    def test_valid_token(self):
        claims = decode_access_token(_token(), secret=SECRET)
        assert claims["sub"] == "user-1"

    def test_wrong_secret(self):
        assert decode_access_token(_token(secret="another-secret-entirely-456789"), secret=SECRET) is None

    def test_wrong_audience(self):
        assert decode_access_token(_token(aud="anon"), secret=SECRET) is None

    def test_expired(self):
        assert decode_access_token(_token(exp=int(time.time()) - 60), secret=SECRET) is None

    def test_no_secret_configured(self):
        with patch.object(settings, "SUPABASE_JWT_SECRET", None):
            assert decode_access_token(_token()) is None


class TestUserContextFromClaims:
    def test_claims(self):
        user = user_context_from_claims(jwt.get_unverified_claims(_token()), "tok")
        assert user.user_id == "user-1"
        assert user.display_name == "Test User"
        assert user.timezone == "Europe/London"
        assert user.access_token == "tok"

    def test_backend_user_record(self):
        user = user_context_from_claims({"id": "user-2", "email": "x@y.test"}, "tok")
        assert user.user_id == "user-2"
        assert user.timezone == settings.DEFAULT_TIMEZONE

    def test_no_id(self):
        assert user_context_from_claims({"email": "x@y.test"}, "tok") is None

    def test_unknown_timezone_reads_as_utc(self):
        user = user_context_from_claims({"sub": "u", "user_metadata": {"timezone": "Mars/Olympus"}}, "tok")
        assert user.local_tz().utcoffset(None).total_seconds() == 0


class TestGetUserContext:
    def test_missing_credentials(self):
        with pytest.raises(APIException) as exc_info:
            get_user_context(None, MagicMock())
        assert exc_info.value.status_code == 401

    def test_local_verification(self):
        backend = MagicMock()
        with patch.object(settings, "SUPABASE_JWT_SECRET", SECRET):
            user = get_user_context(_bearer(_token()), backend)
        assert user.user_id == "user-1"
        backend.fetch_user.assert_not_called()

    def test_local_verification_rejects_bad_token(self):
        with patch.object(settings, "SUPABASE_JWT_SECRET", SECRET):
            with pytest.raises(APIException) as exc_info:
                get_user_context(_bearer("not-a-jwt"), MagicMock())
        assert exc_info.value.status_code == 401

    def test_backend_lookup(self):
        backend = MagicMock()
        backend.fetch_user.return_value = {"id": "user-3", "user_metadata": {"name": "Kai"}}
        with patch.object(settings, "SUPABASE_JWT_SECRET", None):
            user = get_user_context(_bearer("opaque"), backend)
        assert user.user_id == "user-3"
        assert user.display_name == "Kai"
        backend.fetch_user.assert_called_once_with("opaque")

    def test_backend_rejects_token(self):
        backend = MagicMock()
        backend.fetch_user.side_effect = BackendError("invalid JWT", status_code=401)
        with patch.object(settings, "SUPABASE_JWT_SECRET", None):
            with pytest.raises(APIException) as exc_info:
                get_user_context(_bearer("opaque"), backend)
        assert exc_info.value.status_code == 401

    def test_backend_down(self):
        backend = MagicMock()
        backend.fetch_user.side_effect = BackendError("Backend unavailable: refused")
        with patch.object(settings, "SUPABASE_JWT_SECRET", None):
            with pytest.raises(APIException) as exc_info:
                get_user_context(_bearer("opaque"), backend)
        assert exc_info.value.status_code == 503


class TestRoutesRequireAuth:
    @pytest.fixture
    def anonymous_client(self, mock_backend):
        app.dependency_overrides[get_backend] = lambda: mock_backend
        try:
            yield TestClient(app)
        finally:
            app.dependency_overrides.clear()

    @pytest.mark.parametrize("method,path", [
        ("get", "/v1/insights/report"),
        ("post", "/v1/insights/report"),
        ("get", "/v1/insights/today"),
        ("get", "/v1/check-ins"),
        ("post", "/v1/check-ins"),
        ("post", "/v1/meals"),
        ("post", "/v1/meals/analyze"),
        ("delete", "/v1/meals/m1"),
        ("get", "/v1/meals"),
        ("get", "/v1/supplements"),
        ("post", "/v1/supplements"),
        ("patch", "/v1/supplements/s1"),
        ("delete", "/v1/supplements/s1"),
        ("get", "/v1/coach/context"),
        ("post", "/v1/coach/prompt"),
    ])
    def test_401_without_token(self, anonymous_client, method, path):
        response = getattr(anonymous_client, method)(path)
        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    def test_health_is_public(self, anonymous_client):
        assert anonymous_client.get("/health").status_code == 200
