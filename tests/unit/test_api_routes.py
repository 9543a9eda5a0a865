"""
Unit tests for auth API routes.

Tests endpoint responses with the in-memory store and a recording notifier.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from subis_auth.adapters.repository.memory import InMemoryAccountRepository
from subis_auth.api.auth.routes import router
from subis_auth.api.dependencies import (
    get_clock,
    get_hasher,
    get_notifier,
    get_session_issuer,
)
from subis_auth.api.main import store_unavailable_handler
from subis_auth.domain.credentials import CredentialHasher
from subis_auth.domain.exceptions import DeliveryFailed, StoreUnavailable
from subis_auth.domain.lifecycle import utc_now
from subis_auth.domain.sessions import SessionIssuer

from tests.conftest import RecordingNotifier

JANE = {"name": "Jane", "email": "jane@u.edu", "password": "secret1", "role": "STUDENT"}


@pytest.fixture
def app(
    repository: InMemoryAccountRepository,
    notifier: RecordingNotifier,
    sessions: SessionIssuer,
    hasher: CredentialHasher,
) -> FastAPI:
    """Create test FastAPI application wired to in-memory collaborators."""
    test_app = FastAPI()
    test_app.include_router(router, prefix="/auth")
    test_app.add_exception_handler(StoreUnavailable, store_unavailable_handler)
    test_app.state.repository = repository

    test_app.dependency_overrides[get_notifier] = lambda: notifier
    test_app.dependency_overrides[get_session_issuer] = lambda: sessions
    test_app.dependency_overrides[get_hasher] = lambda: hasher
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def register_and_verify(client: TestClient, notifier: RecordingNotifier) -> None:
    client.post("/auth/register", json=JANE)
    client.post(
        "/auth/verify-otp",
        json={"email": JANE["email"], "otp": notifier.last_code_for(JANE["email"])},
    )


class TestRegisterEndpoint:
    """Tests for POST /auth/register."""

    def test_register_success_returns_201(
        self, client: TestClient, notifier: RecordingNotifier
    ) -> None:
        response = client.post("/auth/register", json=JANE)

        assert response.status_code == 201
        assert response.json() == {
            "message": "User registered. Verify OTP.",
            "email": "jane@u.edu",
            "expires_in_seconds": 300,
        }
        assert notifier.sent[0][0] == "jane@u.edu"

    def test_register_response_hides_code(
        self, client: TestClient, notifier: RecordingNotifier
    ) -> None:
        response = client.post("/auth/register", json=JANE)
        assert notifier.last_code_for("jane@u.edu") not in response.text

    def test_register_duplicate_returns_400(self, client: TestClient) -> None:
        client.post("/auth/register", json=JANE)
        response = client.post("/auth/register", json={**JANE, "password": "another1"})

        assert response.status_code == 400
        assert response.json() == {"message": "User already exists"}

    def test_register_multibyte_password_past_bcrypt_limit(
        self, client: TestClient, notifier: RecordingNotifier
    ) -> None:
        """A 72-character password of two-byte text registers and logs in."""
        password = "é" * 72
        response = client.post("/auth/register", json={**JANE, "password": password})
        assert response.status_code == 201

        client.post(
            "/auth/verify-otp",
            json={"email": "jane@u.edu", "otp": notifier.last_code_for("jane@u.edu")},
        )
        response = client.post("/auth/login", json={"email": "jane@u.edu", "password": password})
        assert response.status_code == 200

    def test_register_password_over_72_chars_returns_422(self, client: TestClient) -> None:
        response = client.post("/auth/register", json={**JANE, "password": "a" * 80})
        assert response.status_code == 422

    def test_register_role_defaults_to_student(
        self, client: TestClient, repository: InMemoryAccountRepository
    ) -> None:
        body = {k: v for k, v in JANE.items() if k != "role"}
        assert client.post("/auth/register", json=body).status_code == 201
        assert repository.get_by_email("jane@u.edu").role.value == "STUDENT"

    def test_register_delivery_failure_still_201(
        self, app: FastAPI, client: TestClient
    ) -> None:
        failing = MagicMock()
        failing.send_otp.side_effect = DeliveryFailed("smtp down")
        app.dependency_overrides[get_notifier] = lambda: failing

        response = client.post("/auth/register", json=JANE)

        assert response.status_code == 201
        assert "could not be sent" in response.json()["message"]

    @pytest.mark.parametrize(
        "override",
        [
            {"email": "invalid-email"},
            {"password": "short"},
            {"name": ""},
            {"role": "SUPERUSER"},
        ],
    )
    def test_register_validation(self, client: TestClient, override: dict) -> None:
        response = client.post("/auth/register", json={**JANE, **override})
        assert response.status_code == 422

    @pytest.mark.parametrize("missing", ["name", "email", "password"])
    def test_register_requires_fields(self, client: TestClient, missing: str) -> None:
        body = {k: v for k, v in JANE.items() if k != missing}
        assert client.post("/auth/register", json=body).status_code == 422

    def test_store_fault_returns_503(self, app: FastAPI, client: TestClient) -> None:
        broken = MagicMock()
        broken.create_account.side_effect = StoreUnavailable("db down")
        app.state.repository = broken

        response = client.post("/auth/register", json=JANE)

        assert response.status_code == 503
        assert response.json() == {"message": "Service unavailable"}


class TestVerifyOtpEndpoint:
    """Tests for POST /auth/verify-otp."""

    def test_verify_success(
        self,
        client: TestClient,
        notifier: RecordingNotifier,
        repository: InMemoryAccountRepository,
    ) -> None:
        client.post("/auth/register", json=JANE)
        code = notifier.last_code_for("jane@u.edu")

        response = client.post("/auth/verify-otp", json={"email": "jane@u.edu", "otp": code})

        assert response.status_code == 200
        assert response.json() == {"message": "Email verified", "email": "jane@u.edu"}
        assert repository.get_by_email("jane@u.edu").is_verified is True

    def test_verify_replay_returns_401(
        self, client: TestClient, notifier: RecordingNotifier
    ) -> None:
        client.post("/auth/register", json=JANE)
        body = {"email": "jane@u.edu", "otp": notifier.last_code_for("jane@u.edu")}
        client.post("/auth/verify-otp", json=body)

        response = client.post("/auth/verify-otp", json=body)
        assert response.status_code == 401

    def test_unknown_email_and_wrong_code_look_alike(
        self, client: TestClient, notifier: RecordingNotifier
    ) -> None:
        client.post("/auth/register", json=JANE)
        code = notifier.last_code_for("jane@u.edu")
        wrong = f"{(int(code) + 1) % 1_000_000:06d}"

        unknown = client.post("/auth/verify-otp", json={"email": "ghost@u.edu", "otp": code})
        mismatch = client.post("/auth/verify-otp", json={"email": "jane@u.edu", "otp": wrong})

        assert unknown.status_code == mismatch.status_code == 401
        assert unknown.json() == mismatch.json() == {"message": "Invalid email or OTP"}

    def test_expired_code_returns_401(
        self, app: FastAPI, client: TestClient, notifier: RecordingNotifier
    ) -> None:
        """An expired code reports its own message in the 401 class."""
        client.post("/auth/register", json=JANE)
        code = notifier.last_code_for("jane@u.edu")

        app.dependency_overrides[get_clock] = lambda: (
            lambda: utc_now() + timedelta(minutes=10)
        )
        response = client.post("/auth/verify-otp", json={"email": "jane@u.edu", "otp": code})

        assert response.status_code == 401
        assert response.json() == {"message": "OTP expired"}

    @pytest.mark.parametrize("otp", ["12345", "1234567", "abcdef", ""])
    def test_otp_format_validated(self, client: TestClient, otp: str) -> None:
        response = client.post("/auth/verify-otp", json={"email": "jane@u.edu", "otp": otp})
        assert response.status_code == 422


class TestLoginEndpoint:
    """Tests for POST /auth/login."""

    def test_login_success_returns_token(
        self,
        client: TestClient,
        notifier: RecordingNotifier,
        sessions: SessionIssuer,
        repository: InMemoryAccountRepository,
    ) -> None:
        register_and_verify(client, notifier)

        response = client.post(
            "/auth/login", json={"email": "jane@u.edu", "password": "secret1"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        claims = sessions.decode(body["access_token"])
        assert claims.sub == repository.get_by_email("jane@u.edu").id
        assert claims.role.value == "STUDENT"

    def test_login_unverified_returns_401(self, client: TestClient) -> None:
        client.post("/auth/register", json=JANE)

        response = client.post(
            "/auth/login", json={"email": "jane@u.edu", "password": "secret1"}
        )

        assert response.status_code == 401
        assert response.json() == {"message": "Email not verified"}

    def test_wrong_password_and_unknown_email_identical(
        self, client: TestClient, notifier: RecordingNotifier
    ) -> None:
        register_and_verify(client, notifier)

        wrong = client.post("/auth/login", json={"email": "jane@u.edu", "password": "nope"})
        unknown = client.post("/auth/login", json={"email": "ghost@u.edu", "password": "secret1"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"message": "Invalid credentials"}
        assert wrong.headers.get("content-type") == unknown.headers.get("content-type")

    def test_long_password_failures_identical(
        self, client: TestClient, notifier: RecordingNotifier
    ) -> None:
        """72 two-byte characters pass validation and fail the same way for both emails."""
        register_and_verify(client, notifier)
        password = "é" * 72

        wrong = client.post("/auth/login", json={"email": "jane@u.edu", "password": password})
        unknown = client.post("/auth/login", json={"email": "ghost@u.edu", "password": password})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"message": "Invalid credentials"}

    def test_login_password_over_72_chars_returns_422(self, client: TestClient) -> None:
        response = client.post("/auth/login", json={"email": "jane@u.edu", "password": "a" * 80})
        assert response.status_code == 422

    def test_login_validates_email(self, client: TestClient) -> None:
        response = client.post("/auth/login", json={"email": "nope", "password": "x"})
        assert response.status_code == 422


class TestMeEndpoint:
    """Tests for GET /auth/me."""

    def test_me_returns_claims(
        self,
        client: TestClient,
        notifier: RecordingNotifier,
        repository: InMemoryAccountRepository,
    ) -> None:
        register_and_verify(client, notifier)
        token = client.post(
            "/auth/login", json={"email": "jane@u.edu", "password": "secret1"}
        ).json()["access_token"]

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["sub"] == repository.get_by_email("jane@u.edu").id
        assert response.json()["role"] == "STUDENT"

    def test_me_rejects_bad_token(self, client: TestClient) -> None:
        response = client.get("/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401

    def test_me_requires_header(self, client: TestClient) -> None:
        # Older FastAPI releases answer 403 for a missing bearer header
        assert client.get("/auth/me").status_code in (401, 403)
