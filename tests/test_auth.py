"""
Tests for auth endpoints and the bearer-token dependency.

Supabase Auth is mocked; OTP codes are captured from the mail service.
"""

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from backend.auth.dependencies import user_from_claims
from backend.main import app
from tests.fakes import make_user

client = TestClient(app)


@pytest.fixture
def anon_client():
    with patch("backend.services.auth_service.get_anon_client") as mock:
        mock.return_value = MagicMock()
        yield mock.return_value


@pytest.fixture
def service_client():
    with patch("backend.services.auth_service.get_supabase_client") as mock:
        mock.return_value = MagicMock()
        yield mock.return_value


@pytest.fixture
def sent_codes():
    """Codes the OTP service tried to email, newest last."""
    codes = []

    def fake_send(*, to_email, code, ttl_minutes):
        codes.append((to_email, code))
        return True

    with patch("backend.services.otp_service.send_otp_email", side_effect=fake_send):
        yield codes


def _session_response():
    user = MagicMock()
    user.model_dump.return_value = {"id": "u1", "email": "asha@example.com"}
    session = MagicMock()
    session.model_dump.return_value = {"access_token": "at", "refresh_token": "rt"}
    return SimpleNamespace(user=user, session=session)


class TestUserFromClaims:

    def test_identity_claims(self):
        user = user_from_claims(
            {"sub": "u1", "email": "a@example.com", "phone": "", "user_metadata": {"full_name": "A"}},
            "tok",
        )
        assert user.user_id == "u1"
        assert user.email == "a@example.com"
        assert user.phone is None
        assert user.user_metadata == {"full_name": "A"}

    def test_missing_sub(self):
        with pytest.raises(HTTPException) as exc_info:
            user_from_claims({"email": "a@example.com"}, "tok")
        assert exc_info.value.status_code == 401


class TestPasswordFlows:

    def test_register(self, anon_client):
        anon_client.auth.sign_up.return_value = _session_response()

        response = client.post(
            "/auth/register",
            json={"email": " asha@example.com ", "password": "secret1", "full_name": "Asha"},
        )

        assert response.status_code == 200
        assert response.json()["session"]["access_token"] == "at"
        credentials = anon_client.auth.sign_up.call_args.args[0]
        assert credentials["email"] == "asha@example.com"
        assert credentials["options"] == {"data": {"full_name": "Asha"}}

    def test_register_short_password(self, anon_client):
        response = client.post("/auth/register", json={"email": "a@example.com", "password": "123"})

        assert response.status_code == 400
        anon_client.auth.sign_up.assert_not_called()

    def test_login_rejected(self, anon_client):
        anon_client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")

        response = client.post("/auth/login", json={"email": "a@example.com", "password": "wrong!"})

        assert response.status_code == 401
        assert response.json()["detail"]["details"] == "Invalid login credentials"

    def test_refresh(self, anon_client):
        anon_client.auth.refresh_session.return_value = _session_response()

        response = client.post("/auth/refresh", json={"refresh_token": "rt"})

        assert response.status_code == 200
        assert response.json()["session"]["refresh_token"] == "rt"
        anon_client.auth.refresh_session.assert_called_once_with("rt")

    def test_logout_never_fails(self, service_client):
        service_client.auth.admin.sign_out.side_effect = Exception("already signed out")

        response = client.post("/auth/logout", headers={"Authorization": "Bearer tok"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        service_client.auth.admin.sign_out.assert_called_once_with("tok", "local")


class TestOtpFlows:

    def test_send_otp_invalid_email(self, sent_codes):
        response = client.post("/auth/send-otp", json={"email": "nope"})

        assert response.status_code == 400
        assert sent_codes == []

    def test_reset_password(self, sent_codes, service_client):
        assert client.post("/auth/send-otp", json={"email": "Reset@Example.com"}).status_code == 200
        email, code = sent_codes[-1]
        assert email == "reset@example.com"

        verified = client.post("/auth/verify-otp", json={"email": "reset@example.com", "code": code})
        assert verified.status_code == 200
        reset_token = verified.json()["resetToken"]

        # The code is single use
        again = client.post("/auth/verify-otp", json={"email": "reset@example.com", "code": code})
        assert again.status_code == 400

        service_client.auth.admin.list_users.return_value = [
            SimpleNamespace(id="other", email="other@example.com"),
            SimpleNamespace(id="u-reset", email="Reset@example.com"),
        ]

        response = client.post(
            "/auth/reset-password",
            json={"resetToken": reset_token, "newPassword": "newpass1"},
        )

        assert response.status_code == 200
        service_client.auth.admin.update_user_by_id.assert_called_once_with(
            "u-reset", {"password": "newpass1"}
        )

        replay = client.post(
            "/auth/reset-password",
            json={"resetToken": reset_token, "newPassword": "newpass1"},
        )
        assert replay.status_code == 400

    def test_wrong_code(self, sent_codes):
        client.post("/auth/send-otp", json={"email": "wrong@example.com"})

        response = client.post("/auth/verify-otp", json={"email": "wrong@example.com", "code": "000000"})

        assert response.status_code == 400
        assert response.json()["detail"]["details"] == "Invalid verification code."

    def test_login_with_otp(self, sent_codes, anon_client, service_client):
        client.post("/auth/send-otp", json={"email": "otp@example.com"})
        _, code = sent_codes[-1]
        service_client.auth.admin.generate_link.return_value = SimpleNamespace(
            properties=SimpleNamespace(hashed_token="hash-1")
        )
        anon_client.auth.verify_otp.return_value = _session_response()

        response = client.post("/auth/login-with-otp", json={"email": "otp@example.com", "code": code})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == "u1"
        anon_client.auth.verify_otp.assert_called_once_with({"token_hash": "hash-1", "type": "email"})

    def test_login_with_otp_unknown_user(self, sent_codes, service_client):
        client.post("/auth/send-otp", json={"email": "ghost@example.com"})
        _, code = sent_codes[-1]
        service_client.auth.admin.generate_link.return_value = SimpleNamespace(properties=None)

        response = client.post("/auth/login-with-otp", json={"email": "ghost@example.com", "code": code})

        assert response.status_code == 400
        assert "create an account" in response.json()["detail"]["details"]


class TestAuthMe:

    def test_me_with_profile(self, api_db, login):
        api_db.seed("profiles", {"id": "u1", "full_name": "Asha", "phone": "9876543210", "email": None})
        login(make_user("u1", email="asha@example.com"))

        response = client.get("/auth/me")

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == "u1"
        assert data["profile"]["phone"] == "9876543210"
        assert data["profile"]["email"] == "asha@example.com"

    def test_me_profile_failure_returns_null_profile(self, api_db, login):
        api_db.fail("profiles", "select")
        login(make_user("u1"))

        response = client.get("/auth/me")

        assert response.status_code == 200
        assert response.json()["profile"] is None
