"""
Integration test fixtures.
These fixtures connect to the Firestore emulator and drive the app through its HTML forms.
Tests are skipped when FIRESTORE_EMULATOR_HOST is not set.
"""
import pytest
import os
from fastapi.testclient import TestClient
from google.cloud import firestore
from google.auth.credentials import AnonymousCredentials
from healthcheck.main import app
from healthcheck.dependencies import SESSION_COOKIE_NAME, verify_session_token


@pytest.fixture(scope="session")
def firestore_emulator_host():
    """Get Firestore emulator host from environment, skip if there is none."""
    host = os.getenv("FIRESTORE_EMULATOR_HOST")
    if not host:
        pytest.skip("FIRESTORE_EMULATOR_HOST not set, Firestore emulator required")
    return host


@pytest.fixture(scope="session")
def test_project_id():
    """Get test project ID."""
    return os.getenv("TEST_GCP_PROJECT_ID", "test-project")


def _clear(db: firestore.Client) -> None:
    for collection in db.collections():
        for doc in collection.stream():
            doc.reference.delete()


@pytest.fixture(scope="function")
def test_db(firestore_emulator_host, test_project_id):
    """
    Create a test Firestore client connected to the emulator.
    Cleans up test data before and after each test.
    """
    os.environ["GCP_PROJECT_ID"] = test_project_id

    test_client = firestore.Client(
        project=test_project_id,
        credentials=AnonymousCredentials()
    )

    _clear(test_client)
    yield test_client
    _clear(test_client)


@pytest.fixture
def client(test_db):
    """FastAPI test client backed by the emulator."""
    return TestClient(app)


@pytest.fixture
def other_client(test_db):
    """A second browser with its own cookie jar."""
    return TestClient(app)


def register_and_login(client: TestClient, name: str, email: str, password: str) -> dict:
    """Sign up through the form, log in, and return the session identity."""
    client.post("/register", data={
        "name": name,
        "email": email,
        "password": password,
        "confirm_password": password,
    }, follow_redirects=False)

    response = client.post("/login", data={"email": email, "password": password}, follow_redirects=False)
    assert response.status_code == 303, response.text

    auth = verify_session_token(response.cookies[SESSION_COOKIE_NAME])
    return {"user_id": auth.user_id, "name": name, "email": email, "password": password}


@pytest.fixture
def registered_user(client):
    """Register a user and leave the client logged in as them."""
    return register_and_login(client, "Test User", "testuser@example.com", "testpassword123")


@pytest.fixture
def login_as():
    """The sign-up and login helper, for tests that need a second user."""
    return register_and_login
