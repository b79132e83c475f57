"""
Route tests with every service mocked.
Covers redirects, session handling and how service outcomes are rendered.
"""
import pytest
from unittest.mock import AsyncMock, patch
from datetime import datetime, timezone
from healthcheck import rate_limiter
from healthcheck.dependencies import SESSION_COOKIE_NAME, verify_session_token
from healthcheck.models.measurement import (
    BloodPressureCategory,
    MeasurementHistory,
    SpO2Category,
    VitalsCheckResult,
    VitalsRecord,
    WeightCategory,
    WeightCheckResult,
    WeightRecord,
)
from healthcheck.models.user import User
from healthcheck.services.user_service import (
    EmailTakenError,
    InvalidCredentialsError,
    StorageFailureError,
)

NOW = datetime(2026, 1, 10, 8, 30, tzinfo=timezone.utc)


def weight_record(**overrides) -> WeightRecord:
    data = dict(
        id="w1", user_id="user123", name="Test User", age=30,
        height_cm=175, weight_kg=70, bmi=22.86,
        weight_category=WeightCategory.NORMAL, created_at=NOW,
    )
    data.update(overrides)
    return WeightRecord(**data)


def vitals_record(**overrides) -> VitalsRecord:
    data = dict(
        id="v1", user_id="user123", name="Test User", age=30,
        systolic=190, diastolic=125, blood_category=BloodPressureCategory.CRISIS,
        spo2=94, spo2_category=SpO2Category.LOW, created_at=NOW,
    )
    data.update(overrides)
    return VitalsRecord(**data)


class TestPublicPages:
    """Pages that need no session."""

    @pytest.mark.parametrize("path", ["/", "/login", "/register"])
    def test_public_page_renders(self, client, path):
        response = client.get(path)

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_security_headers(self, client):
        response = client.get("/")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert "default-src 'self'" in response.headers["Content-Security-Policy"]


class TestProtectedPages:
    """Protected routes without a session redirect to /login and change nothing."""

    @pytest.mark.parametrize("path", ["/index", "/check-weight", "/check-vitals", "/history"])
    def test_get_redirects_to_login(self, client, history_service_mock, path):
        response = client.get(path, follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        history_service_mock.list_history.assert_not_called()

    def test_post_weight_without_session(self, client, measurement_service_mock):
        response = client.post(
            "/check-weight",
            data={"name": "Ann", "age": "30", "height": "170", "weight": "65"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        measurement_service_mock.record_weight.assert_not_called()

    def test_post_vitals_without_session(self, client, measurement_service_mock):
        response = client.post(
            "/check-vitals",
            data={"name": "Ann", "age": "30", "systolic": "120", "diastolic": "80", "spo2": "98"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        measurement_service_mock.record_vitals.assert_not_called()

    def test_tampered_cookie_redirects(self, client):
        client.cookies.set(SESSION_COOKIE_NAME, "not-a-jwt-token")

        response = client.get("/index", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_dashboard_with_session(self, logged_in_client):
        response = logged_in_client.get("/index")

        assert response.status_code == 200
        assert "Welcome, Test User" in response.text

    def test_session_cookie_is_refreshed(self, logged_in_client):
        """Every authenticated response re-issues the cookie so the expiry slides."""
        response = logged_in_client.get("/index")

        assert SESSION_COOKIE_NAME in response.cookies
        assert verify_session_token(response.cookies[SESSION_COOKIE_NAME]).user_id == "user123"


class TestLogin:
    """Tests for POST /login."""

    def test_login_success_sets_session(self, client, user_service_mock):
        user_service_mock.verify_user_credentials.return_value = {
            "id": "user123", "name": "Test User", "email": "test@example.com",
        }

        response = client.post(
            "/login",
            data={"email": "Test@Example.com", "password": "secret123"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/index"
        auth = verify_session_token(response.cookies[SESSION_COOKIE_NAME])
        assert auth.user_id == "user123"
        assert auth.user_name == "Test User"
        user_service_mock.verify_user_credentials.assert_awaited_once_with("test@example.com", "secret123")

    def test_login_invalid_credentials(self, client, user_service_mock):
        user_service_mock.verify_user_credentials.side_effect = InvalidCredentialsError("Invalid email or password")

        response = client.post("/login", data={"email": "test@example.com", "password": "wrongpass"})

        assert response.status_code == 401
        assert "Invalid email or password" in response.text
        assert SESSION_COOKIE_NAME not in response.cookies

    def test_login_validation_error(self, client, user_service_mock):
        response = client.post("/login", data={"email": "not-an-email", "password": "123"})

        assert response.status_code == 400
        user_service_mock.verify_user_credentials.assert_not_called()

    def test_login_storage_failure(self, client, user_service_mock):
        user_service_mock.verify_user_credentials.side_effect = StorageFailureError("down")

        response = client.post("/login", data={"email": "test@example.com", "password": "secret123"})

        assert response.status_code == 503
        assert "Database error" in response.text


class TestRegister:
    """Tests for POST /register."""

    @pytest.fixture
    def form(self):
        return {
            "name": "New User",
            "email": "newuser@example.com",
            "password": "secret123",
            "confirm_password": "secret123",
        }

    def test_register_success_redirects_to_login(self, client, user_service_mock, form):
        user_service_mock.register.return_value = User(
            id="123e4567-e89b-12d3-a456-426614174000",
            name="New User",
            email="newuser@example.com",
            created_at=NOW,
        )

        response = client.post("/register", data=form, follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        registered = user_service_mock.register.await_args.args[0]
        assert registered.email == "newuser@example.com"

    def test_register_email_taken(self, client, user_service_mock, form):
        user_service_mock.register.side_effect = EmailTakenError("Email newuser@example.com already registered")

        response = client.post("/register", data=form)

        assert response.status_code == 409
        assert "already registered" in response.text

    def test_register_password_mismatch(self, client, user_service_mock, form):
        form["confirm_password"] = "different"

        response = client.post("/register", data=form)

        assert response.status_code == 400
        assert "Password confirmation does not match" in response.text
        user_service_mock.register.assert_not_called()

    def test_register_storage_failure(self, client, user_service_mock, form):
        user_service_mock.register.side_effect = StorageFailureError("down")

        response = client.post("/register", data=form)

        assert response.status_code == 503


class TestLogout:
    """Tests for GET /logout."""

    def test_logout_clears_session(self, logged_in_client):
        response = logged_in_client.get("/logout", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{SESSION_COOKIE_NAME}=")
        assert "Max-Age=0" in set_cookie

    def test_logout_without_session(self, client):
        response = client.get("/logout", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/"


class TestCheckWeight:
    """Tests for the weight check pages."""

    def test_form_prefills_name(self, logged_in_client):
        response = logged_in_client.get("/check-weight")

        assert response.status_code == 200
        assert 'value="Test User"' in response.text

    def test_submit_renders_result(self, logged_in_client, measurement_service_mock):
        measurement_service_mock.record_weight.return_value = WeightCheckResult(record=weight_record())

        response = logged_in_client.post(
            "/check-weight",
            data={"name": "Test User", "age": "30", "height": "175", "weight": "70"},
        )

        assert response.status_code == 200
        assert "22.86" in response.text
        assert "Normal" in response.text
        assert "Failed to save data" not in response.text
        user_id, form = measurement_service_mock.record_weight.await_args.args
        assert user_id == "user123"
        assert form.height == 175

    def test_storage_failure_still_shows_result(self, logged_in_client, measurement_service_mock):
        measurement_service_mock.record_weight.return_value = WeightCheckResult(record=weight_record(), stored=False)

        response = logged_in_client.post(
            "/check-weight",
            data={"name": "Test User", "age": "30", "height": "175", "weight": "70"},
        )

        assert response.status_code == 200
        assert "22.86" in response.text
        assert "Failed to save data" in response.text

    def test_invalid_input_rerenders_form(self, logged_in_client, measurement_service_mock):
        response = logged_in_client.post(
            "/check-weight",
            data={"name": "Test User", "age": "30", "height": "0", "weight": "70"},
        )

        assert response.status_code == 400
        assert "height" in response.text
        measurement_service_mock.record_weight.assert_not_called()


class TestCheckVitals:
    """Tests for the vitals check pages."""

    def test_submit_renders_both_categories(self, logged_in_client, measurement_service_mock):
        measurement_service_mock.record_vitals.return_value = VitalsCheckResult(record=vitals_record())

        response = logged_in_client.post(
            "/check-vitals",
            data={"name": "Test User", "age": "30", "systolic": "190", "diastolic": "125", "spo2": "94"},
        )

        assert response.status_code == 200
        assert "Hypertensive Crisis" in response.text
        assert "Low" in response.text

    def test_storage_failure_still_shows_result(self, logged_in_client, measurement_service_mock):
        measurement_service_mock.record_vitals.return_value = VitalsCheckResult(record=vitals_record(), stored=False)

        response = logged_in_client.post(
            "/check-vitals",
            data={"name": "Test User", "age": "30", "systolic": "190", "diastolic": "125", "spo2": "94"},
        )

        assert response.status_code == 200
        assert "Hypertensive Crisis" in response.text
        assert "Failed to save data" in response.text

    def test_missing_field(self, logged_in_client, measurement_service_mock):
        response = logged_in_client.post(
            "/check-vitals",
            data={"name": "Test User", "age": "30", "systolic": "120", "diastolic": "80"},
        )

        assert response.status_code == 400
        measurement_service_mock.record_vitals.assert_not_called()


class TestHistory:
    """Tests for GET /history."""

    def test_history_lists_records(self, logged_in_client, history_service_mock):
        history_service_mock.list_history.return_value = MeasurementHistory(
            weight_records=[weight_record()],
            vitals_records=[vitals_record()],
        )

        response = logged_in_client.get("/history")

        assert response.status_code == 200
        assert "22.86" in response.text
        assert "190/125" in response.text
        history_service_mock.list_history.assert_awaited_once_with("user123")

    def test_empty_history(self, logged_in_client, history_service_mock):
        history_service_mock.list_history.return_value = MeasurementHistory()

        response = logged_in_client.get("/history")

        assert response.status_code == 200
        assert "No weight checks yet." in response.text
        assert "No vitals checks yet." in response.text

    def test_partial_failure(self, logged_in_client, history_service_mock):
        history_service_mock.list_history.return_value = MeasurementHistory(
            vitals_records=[vitals_record()],
            weight_failed=True,
        )

        response = logged_in_client.get("/history")

        assert response.status_code == 200
        assert "Failed to load weight history" in response.text
        assert "190/125" in response.text


class TestMiddlewareOrder:
    """Security headers wrap the rate limiter, which runs before the session lookup."""

    def test_limited_request_keeps_headers_and_skips_session(self, logged_in_client):
        with patch.object(rate_limiter, "_script_sha", "sha"), \
                patch.object(rate_limiter, "DISABLE_RATE_LIMIT", False), \
                patch("healthcheck.rate_limiter.is_request_allowed", AsyncMock(return_value=False)), \
                patch("healthcheck.dependencies.read_session", AsyncMock()) as read_session:
            response = logged_in_client.get("/index")

        assert response.status_code == 429
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert SESSION_COOKIE_NAME not in response.cookies
        read_session.assert_not_called()
