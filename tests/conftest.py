"""
Pytest configuration for InvoiceBill backend tests.

Sets up test environment and global fixtures.
"""
import os
import pytest

# Disable config validation during tests
# This allows tests to run without requiring real environment variables
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SABPAISA_CLIENT_CODE", "TEST01")
os.environ.setdefault("SABPAISA_TRANS_USERNAME", "test_user")
os.environ.setdefault("SABPAISA_TRANS_PASSWORD", "test_pass")
os.environ.setdefault("SABPAISA_AUTH_KEY", "0123456789abcdef")
os.environ.setdefault("SABPAISA_AUTH_IV", "fedcba9876543210")
os.environ.setdefault("SABPAISA_BASE_URL", "https://securepay.example.com/SabPaisa/sabPaisaInit")

from tests.fakes import FakeSupabase  # noqa: E402


@pytest.fixture
def fake_db():
    """Empty in-memory Supabase."""
    return FakeSupabase()


@pytest.fixture(autouse=True)
def no_external_delivery(monkeypatch):
    """Push and email never leave the process in tests."""
    sent = {"push": [], "email": []}

    async def fake_push(messages, http_client=None):
        sent["push"].extend(messages)
        return len(messages)

    def fake_email(**kwargs):
        sent["email"].append(kwargs)
        return True

    monkeypatch.setattr("backend.services.notification_service.send_push_notifications", fake_push)
    monkeypatch.setattr("backend.services.notification_service.send_document_notification_email", fake_email)
    return sent


ROUTE_MODULES = (
    "auth",
    "bank_accounts",
    "customers",
    "invoices",
    "items",
    "messages",
    "payments",
    "profile",
    "quotations",
)


@pytest.fixture
def api_db(fake_db, monkeypatch):
    """Point every router at the in-memory Supabase."""
    for name in ROUTE_MODULES:
        monkeypatch.setattr(f"backend.routes.{name}.get_supabase_client", lambda: fake_db)
    return fake_db


@pytest.fixture
def login():
    """
    Authenticate API requests as a given user.

    Usage: login(make_user("alice")); call again to switch users.
    """
    from backend.auth.dependencies import get_authenticated_user
    from backend.main import app

    current = {}

    async def mock_get_authenticated_user_dependency():
        return current["user"]

    def _login(user):
        current["user"] = user
        app.dependency_overrides[get_authenticated_user] = mock_get_authenticated_user_dependency
        return user

    yield _login
    app.dependency_overrides.clear()
