"""
Pytest configuration and fixtures

Nothing here touches the network: API tests swap the backend client and
the auth dependency for in-memory stand-ins via dependency_overrides.
"""
import pytest
import sys
import os
from unittest.mock import MagicMock

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from schemas import UserContext


@pytest.fixture
def user_context():
    """Authenticated caller in UTC."""
    return UserContext(
        user_id="user-1",
        email="test@example.com",
        display_name="Test User",
        timezone="UTC",
        access_token="test-token",
    )


@pytest.fixture
def mock_backend():
    """Backend client double with empty data by default."""
    backend = MagicMock()
    backend.fetch_check_ins.return_value = []
    backend.fetch_meals.return_value = []
    backend.fetch_supplements.return_value = []
    backend.fetch_profile.return_value = None
    return backend


@pytest.fixture
def client(user_context, mock_backend):
    """TestClient with auth and backend overridden."""
    from fastapi.testclient import TestClient
    from main import app
    from core.auth import get_user_context
    from core.backend import get_backend

    app.dependency_overrides[get_user_context] = lambda: user_context
    app.dependency_overrides[get_backend] = lambda: mock_backend
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
