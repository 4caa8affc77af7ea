"""
Tests for caller identity resolution and profile reconciliation.
"""

import pytest

from backend.services.profile_service import (
    get_profile_view,
    normalize_profile_updates,
    plan_profile_reconciliation,
    resolve_caller_identity,
    resolve_identity,
    update_user_profile,
)
from backend.utils.identity import Identity
from tests.fakes import make_user


class TestResolveIdentity:

    def test_metadata_wins_over_primary_fields_and_profile(self):
        user = make_user("u1", email="primary@example.com", phone="1111111111")
        user.user_metadata = {"phone": "+91 98765 43210", "email": "Meta@Example.com"}

        identity = resolve_identity(user, {"phone": "2222222222", "email": "stored@example.com"})

        assert identity == Identity(phone="9876543210", email="meta@example.com")

    def test_profile_fills_what_the_token_lacks(self):
        user = make_user("u1")
        identity = resolve_identity(user, {"phone": "+91-98765 43210", "email": None})
        assert identity == Identity(phone="9876543210", email=None)

    def test_no_sources(self):
        assert resolve_identity(make_user("u1"), None).is_empty


class TestPlanReconciliation:

    def test_missing_row_is_created_from_token(self):
        user = make_user("u1", email="A@Example.com", full_name=" Asha ")
        action, row = plan_profile_reconciliation(user, None)

        assert action == "create"
        assert row == {"id": "u1", "phone": None, "email": "a@example.com", "full_name": "Asha"}

    def test_only_empty_fields_are_filled(self):
        user = make_user("u1", email="a@example.com", phone="9876543210")
        plan = plan_profile_reconciliation(user, {"id": "u1", "phone": "1234567890", "email": None})

        assert plan == ("update", {"email": "a@example.com"})

    def test_complete_row_needs_nothing(self):
        user = make_user("u1", email="a@example.com", phone="9876543210")
        assert plan_profile_reconciliation(
            user, {"id": "u1", "phone": "9876543210", "email": "a@example.com"}
        ) is None


class TestResolveCallerIdentity:

    @pytest.mark.asyncio
    async def test_creates_missing_profile_once(self, fake_db):
        user = make_user("u1", phone="+91 98765 43210")

        first = await resolve_caller_identity(fake_db, user)
        second = await resolve_caller_identity(fake_db, user)

        assert first == second == Identity(phone="9876543210")
        rows = fake_db.rows("profiles")
        assert len(rows) == 1
        assert rows[0]["id"] == "u1"
        assert rows[0]["phone"] == "9876543210"
        assert fake_db.count("profiles", "upsert") == 1

    @pytest.mark.asyncio
    async def test_complete_profile_is_not_rewritten(self, fake_db):
        fake_db.seed("profiles", {"id": "u1", "phone": "9876543210", "email": "a@example.com"})
        user = make_user("u1", email="a@example.com")

        await resolve_caller_identity(fake_db, user)
        await resolve_caller_identity(fake_db, user)

        assert fake_db.count("profiles", "update") == 0
        assert fake_db.count("profiles", "upsert") == 0

    @pytest.mark.asyncio
    async def test_backfills_missing_email(self, fake_db):
        fake_db.seed("profiles", {"id": "u1", "phone": "9876543210", "email": None})
        user = make_user("u1", email="A@example.com")

        identity = await resolve_caller_identity(fake_db, user)

        assert identity == Identity(phone="9876543210", email="a@example.com")
        assert fake_db.rows("profiles")[0]["email"] == "a@example.com"

    @pytest.mark.asyncio
    async def test_write_failure_does_not_fail_resolution(self, fake_db):
        fake_db.fail("profiles", "upsert")
        user = make_user("u1", email="a@example.com")

        identity = await resolve_caller_identity(fake_db, user)

        assert identity == Identity(email="a@example.com")

    @pytest.mark.asyncio
    async def test_read_failure_falls_back_to_token(self, fake_db):
        fake_db.fail("profiles", "select")
        user = make_user("u1", phone="9876543210")

        identity = await resolve_caller_identity(fake_db, user)

        assert identity == Identity(phone="9876543210")
        assert fake_db.count("profiles", "upsert") == 0


class TestProfileUpdates:

    def test_normalizes_contact_fields(self):
        assert normalize_profile_updates({
            "phone": "+91-98765 43210",
            "email": " A@Example.com",
            "full_name": " Asha ",
            "avatar_url": "ignored",
        }) == {"phone": "9876543210", "email": "a@example.com", "full_name": "Asha"}

    def test_empty_values_clear_fields(self):
        assert normalize_profile_updates({"phone": "", "email": "  "}) == {"phone": None, "email": None}

    def test_invalid_phone_rejected(self):
        with pytest.raises(ValueError, match="10 digits"):
            normalize_profile_updates({"phone": "12345"})

    def test_invalid_email_rejected(self):
        with pytest.raises(ValueError, match="valid email"):
            normalize_profile_updates({"email": "nope"})

    @pytest.mark.asyncio
    async def test_update_writes_canonical_values(self, fake_db):
        fake_db.seed("profiles", {"id": "u1", "phone": None, "email": None})

        updated = await update_user_profile(fake_db, "u1", phone="098765-43210")

        assert updated["phone"] == "9876543210"

    @pytest.mark.asyncio
    async def test_profile_view_merges_token_identity(self, fake_db):
        fake_db.seed("profiles", {"id": "u1", "full_name": None, "phone": None, "email": None})
        user = make_user("u1", email="a@example.com", full_name="Asha")

        view = await get_profile_view(fake_db, user)

        assert view["full_name"] == "Asha"
        assert view["email"] == "a@example.com"
        assert view["phone"] is None
