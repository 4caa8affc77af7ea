"""
Tests for the owner-scoped CRUD services: customers, items, bank accounts.
"""

import pytest

from backend.services.bank_account_service import (
    create_bank_account,
    delete_bank_account,
    get_user_bank_accounts,
    last_four_digits,
    update_bank_account,
)
from backend.services.customer_service import (
    create_customer,
    delete_customer,
    get_customer_by_id,
    get_user_customers,
    update_customer,
)
from backend.services.item_service import create_item, delete_item, get_user_items, update_item


class TestCustomers:

    @pytest.mark.asyncio
    async def test_contact_fields_are_canonical(self, fake_db):
        customer = await create_customer(
            fake_db, "alice", name=" Bob Traders ", phone="+91-98765 43210", email=" Bob@Example.com "
        )

        assert customer["name"] == "Bob Traders"
        assert customer["phone"] == "9876543210"
        assert customer["email"] == "bob@example.com"
        assert customer["color"] == "blue"

    @pytest.mark.asyncio
    async def test_invalid_contact_rejected(self, fake_db):
        with pytest.raises(ValueError, match="10 digits"):
            await create_customer(fake_db, "alice", name="Bob", phone="12345")
        with pytest.raises(ValueError, match="valid email"):
            await create_customer(fake_db, "alice", name="Bob", email="bob")
        with pytest.raises(ValueError, match="Name is required"):
            await create_customer(fake_db, "alice", name="  ")

        assert fake_db.rows("customers") == []

    @pytest.mark.asyncio
    async def test_scoped_to_owner(self, fake_db):
        mine = await create_customer(fake_db, "alice", name="Mine")
        theirs = await create_customer(fake_db, "bob", name="Theirs")

        assert [c["id"] for c in await get_user_customers(fake_db, "alice")] == [mine["id"]]
        assert await get_customer_by_id(fake_db, "alice", theirs["id"]) is None
        assert await update_customer(fake_db, "alice", theirs["id"], name="Hijacked") is None
        assert await delete_customer(fake_db, "alice", theirs["id"]) is False

    @pytest.mark.asyncio
    async def test_update_clears_empty_contact(self, fake_db):
        customer = await create_customer(fake_db, "alice", name="Bob", phone="9876543210")

        updated = await update_customer(fake_db, "alice", customer["id"], phone="", email="NEW@example.com")

        assert updated["phone"] is None
        assert updated["email"] == "new@example.com"


class TestItems:

    @pytest.mark.asyncio
    async def test_crud(self, fake_db):
        item = await create_item(fake_db, "alice", name=" Design ", rate=1200, description="  ")
        assert item["name"] == "Design"
        assert item["description"] is None

        updated = await update_item(fake_db, "alice", item["id"], rate=1500)
        assert updated["rate"] == 1500
        assert await update_item(fake_db, "bob", item["id"], rate=1) is None

        assert len(await get_user_items(fake_db, "alice")) == 1
        assert await delete_item(fake_db, "alice", item["id"]) is True
        assert await get_user_items(fake_db, "alice") == []

    @pytest.mark.asyncio
    async def test_name_required(self, fake_db):
        with pytest.raises(ValueError):
            await create_item(fake_db, "alice", name="")


class TestBankAccounts:

    def test_last_four_digits(self):
        assert last_four_digits("XXXX-XXXX-1234") == "1234"
        assert last_four_digits("12") == "12"
        assert last_four_digits(None) is None
        assert last_four_digits("abc") is None

    @pytest.mark.asyncio
    async def test_crud(self, fake_db):
        account = await create_bank_account(
            fake_db, "alice",
            account_holder="Alice",
            ifsc=" HDFC0001234 ",
            account_number_last4="50100012345678",
        )
        assert account["ifsc"] == "HDFC0001234"
        assert account["account_number_last4"] == "5678"
        assert account["is_default"] is False

        with pytest.raises(ValueError, match="IFSC"):
            await update_bank_account(fake_db, "alice", account["id"], ifsc=" ")

        updated = await update_bank_account(fake_db, "alice", account["id"], is_default=True)
        assert updated["is_default"] is True

        assert await delete_bank_account(fake_db, "bob", account["id"]) is False
        assert await delete_bank_account(fake_db, "alice", account["id"]) is True
        assert await get_user_bank_accounts(fake_db, "alice") == []

    @pytest.mark.asyncio
    async def test_required_fields(self, fake_db):
        with pytest.raises(ValueError, match="Account holder"):
            await create_bank_account(fake_db, "alice", account_holder="", ifsc="HDFC0001234")
