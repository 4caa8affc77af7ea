"""
Tests for profile endpoints.

Tests cover:
- Profile retrieval (token identity merged in, missing row created)
- Profile updates (canonical phone/email, validation)
- Avatar upload
- Authentication
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from backend.main import app
from tests.fakes import make_user

client = TestClient(app)


@pytest.fixture
def mock_profile():
    """Stored profile row."""
    return {
        "id": "test-user-id",
        "full_name": "Test User",
        "phone": "9876543210",
        "email": "test@example.com",
        "avatar_url": "https://example.com/avatar.jpg",
        "pincode": "560001",
        "expo_push_token": None,
    }


class TestGetProfile:
    """Tests for GET /profiles/me"""

    def test_get_profile_success(self, api_db, login, mock_profile):
        api_db.seed("profiles", mock_profile)
        login(make_user("test-user-id", email="test@example.com"))

        response = client.get("/profiles/me")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "test-user-id"
        assert data["full_name"] == "Test User"
        assert data["phone"] == "9876543210"
        assert data["pincode"] == "560001"
        assert api_db.count("profiles", "update") == 0

    def test_missing_profile_is_created_from_token(self, api_db, login):
        login(make_user("new-user", phone="+91 98765 43210", full_name="New User"))

        response = client.get("/profiles/me")

        assert response.status_code == 200
        assert response.json()["phone"] == "9876543210"
        assert response.json()["full_name"] == "New User"
        assert api_db.rows("profiles")[0]["id"] == "new-user"

    def test_get_profile_unauthorized(self):
        """Without a Bearer token the dependency rejects the request."""
        app.dependency_overrides.clear()

        response = client.get("/profiles/me")

        assert response.status_code == 401


class TestUpdateProfile:
    """Tests for PATCH /profiles/me"""

    def test_update_normalizes_contact(self, api_db, login, mock_profile):
        api_db.seed("profiles", mock_profile)
        login(make_user("test-user-id"))

        response = client.patch(
            "/profiles/me",
            json={"phone": "+91-91234 56789", "email": " New@Example.COM "},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "UPDATED"
        assert data["profile"]["phone"] == "9123456789"
        assert data["profile"]["email"] == "new@example.com"

    def test_update_clears_phone(self, api_db, login, mock_profile):
        api_db.seed("profiles", mock_profile)
        login(make_user("test-user-id"))

        response = client.patch("/profiles/me", json={"phone": ""})

        assert response.status_code == 200
        assert response.json()["profile"]["phone"] is None

    @pytest.mark.parametrize("body, details", [
        ({"phone": "12345"}, "Phone number must contain at least 10 digits"),
        ({"email": "not-an-email"}, "Please enter a valid email address"),
    ])
    def test_update_invalid_contact(self, api_db, login, mock_profile, body, details):
        api_db.seed("profiles", mock_profile)
        login(make_user("test-user-id"))

        response = client.patch("/profiles/me", json=body)

        assert response.status_code == 400
        assert response.json()["detail"] == {"error": "invalid_request", "details": details}

    def test_update_push_token(self, api_db, login, mock_profile):
        api_db.seed("profiles", mock_profile)
        login(make_user("test-user-id"))

        response = client.patch("/profiles/me", json={"expo_push_token": "ExponentPushToken[abc]"})

        assert response.status_code == 200
        assert api_db.rows("profiles")[0]["expo_push_token"] == "ExponentPushToken[abc]"


class TestAvatar:
    """Tests for POST /profiles/me/avatar"""

    @patch("backend.routes.profile.upload_avatar", new_callable=AsyncMock)
    def test_upload_success(self, mock_upload, api_db, login, mock_profile):
        login(make_user("test-user-id"))
        mock_upload.return_value = {**mock_profile, "avatar_url": "https://cdn/avatars/test-user-id/avatar.png"}

        response = client.post("/profiles/me/avatar", json={"imageBase64": "aGVsbG8="})

        assert response.status_code == 200
        assert response.json()["avatar_url"].endswith("avatar.png")
        assert mock_upload.call_args.args[1:] == ("test-user-id", "aGVsbG8=")

    @patch("backend.routes.profile.upload_avatar", new_callable=AsyncMock)
    def test_upload_too_large(self, mock_upload, api_db, login):
        login(make_user("test-user-id"))
        mock_upload.side_effect = ValueError("Image must be less than 5MB")

        response = client.post("/profiles/me/avatar", json={"imageBase64": "aGVsbG8="})

        assert response.status_code == 400
        assert response.json()["detail"]["details"] == "Image must be less than 5MB"

    @patch("backend.routes.profile.upload_avatar", new_callable=AsyncMock)
    def test_storage_failure(self, mock_upload, api_db, login):
        login(make_user("test-user-id"))
        mock_upload.side_effect = Exception("Bucket not found")

        response = client.post("/profiles/me/avatar", json={"imageBase64": "aGVsbG8="})

        assert response.status_code == 400
        assert response.json()["detail"] == {"error": "upload_error", "details": "Bucket not found"}

    def test_missing_image(self, api_db, login):
        login(make_user("test-user-id"))

        response = client.post("/profiles/me/avatar", json={})

        assert response.status_code == 422
