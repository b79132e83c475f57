"""
Unit test fixtures - no external dependencies needed.
"""
import pytest
from unittest.mock import AsyncMock, Mock
from fastapi.testclient import TestClient

from healthcheck.dependencies import SESSION_COOKIE_NAME, create_session_token
from healthcheck.main import app
from healthcheck.services.history_service import get_history_service
from healthcheck.services.measurement_service import get_measurement_service
from healthcheck.services.user_service import get_user_service


@pytest.fixture
def mock_db():
    """Mock Firestore client for unit tests."""
    db = Mock()
    db.collection = Mock(return_value=Mock())
    return db


@pytest.fixture
def mock_collection():
    """Mock Firestore collection."""
    return Mock()


@pytest.fixture
def user_service_mock():
    return AsyncMock()


@pytest.fixture
def measurement_service_mock():
    return AsyncMock()


@pytest.fixture
def history_service_mock():
    return AsyncMock()


@pytest.fixture
def client(user_service_mock, measurement_service_mock, history_service_mock):
    """App client with every service replaced by a mock."""
    app.dependency_overrides[get_user_service] = lambda: user_service_mock
    app.dependency_overrides[get_measurement_service] = lambda: measurement_service_mock
    app.dependency_overrides[get_history_service] = lambda: history_service_mock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def logged_in_client(client):
    """Client carrying a valid session cookie for user123."""
    token = create_session_token({"sub": "user123", "name": "Test User"})
    client.cookies.set(SESSION_COOKIE_NAME, token)
    return client
