"""
Tests for the document notification fan-out.
"""

import pytest

from backend.services.document_service import INVOICE, QUOTATION
from backend.services.notification_service import (
    format_amount,
    line_items_total,
    notify_document_created,
)


class TestAmounts:

    @pytest.mark.parametrize("total, expected", [
        (250, "₹250"),
        (1500, "₹1,500"),
        (150000, "₹1,50,000"),
        (12345678.5, "₹1,23,45,678.5"),
        (99.999, "₹100"),
    ])
    def test_indian_grouping(self, total, expected):
        assert format_amount(total) == expected

    def test_zero_total_is_omitted(self):
        assert format_amount(0) is None
        assert format_amount(-5) is None

    def test_line_items_total_skips_malformed(self):
        items = [
            {"qty": 2, "rate": 100},
            {"qty": "1", "rate": "50"},
            {"qty": "x", "rate": 10},
            {"qty": None, "rate": 10},
        ]
        assert line_items_total(items) == 250


def _invoice(**overrides):
    document = {
        "id": "inv-1",
        "user_id": "sender",
        "number": "INV-7",
        "recipient_phone": "9876543210",
        "recipient_email": None,
        "customers": {"id": "c1", "name": "Bob Traders", "phone": "9876543210", "email": "bob@example.com"},
        "invoice_items": [{"qty": 2, "rate": 100}, {"qty": 1, "rate": 50}],
    }
    document.update(overrides)
    return document


@pytest.fixture
def users(fake_db):
    fake_db.seed(
        "profiles",
        {"id": "sender", "full_name": "Asha", "phone": "1111111111", "expo_push_token": "ExponentPushToken[sender]"},
        {"id": "bob", "full_name": "Bob", "phone": "9876543210", "expo_push_token": None},
    )
    return fake_db


class TestNotifyDocumentCreated:

    @pytest.mark.asyncio
    async def test_messages_for_sender_and_receiver(self, users, no_external_delivery):
        report = await notify_document_created(users, INVOICE, _invoice(), "sender")

        assert report.receiver_ids == ["bob"]
        assert report.messages_inserted == 2

        messages = {m["user_id"]: m for m in users.rows("messages")}
        assert messages["sender"]["title"] == "Invoice INV-7 sent to Bob Traders"
        assert messages["bob"]["title"] == "New invoice INV-7 from Asha"
        assert messages["bob"]["description"] == "Asha sent you invoice INV-7 for ₹250."
        assert all(m["unread"] for m in messages.values())

    @pytest.mark.asyncio
    async def test_push_only_for_users_with_tokens(self, users, no_external_delivery):
        report = await notify_document_created(users, INVOICE, _invoice(), "sender")

        assert report.pushes_attempted == 1
        [push] = no_external_delivery["push"]
        assert push.token == "ExponentPushToken[sender]"
        assert push.data == {"type": "invoice", "id": "inv-1"}

    @pytest.mark.asyncio
    async def test_email_goes_to_customer(self, users, no_external_delivery):
        report = await notify_document_created(users, INVOICE, _invoice(), "sender")

        assert report.email_sent is True
        [email] = no_external_delivery["email"]
        assert email["to_email"] == "bob@example.com"
        assert email["document_label"] == "Invoice"
        assert email["amount"] == "₹250"

    @pytest.mark.asyncio
    async def test_no_email_without_valid_customer_address(self, users, no_external_delivery):
        document = _invoice(customers={"id": "c1", "name": "Bob", "email": "not-an-email"})

        report = await notify_document_created(users, INVOICE, document, "sender")

        assert report.email_sent is False
        assert no_external_delivery["email"] == []

    @pytest.mark.asyncio
    async def test_message_failures_do_not_stop_other_channels(self, users, no_external_delivery):
        users.fail("messages", "insert")

        report = await notify_document_created(users, INVOICE, _invoice(), "sender")

        assert report.messages_inserted == 0
        assert report.receiver_ids == ["bob"]
        assert len(no_external_delivery["push"]) == 1
        assert report.email_sent is True

    @pytest.mark.asyncio
    async def test_lookup_failure_still_notifies_sender(self, users, no_external_delivery):
        users.fail("profiles", "select")

        report = await notify_document_created(users, INVOICE, _invoice(), "sender")

        assert report.receiver_ids == []
        assert [m["user_id"] for m in users.rows("messages")] == ["sender"]
        # Sender name falls back to the default
        assert no_external_delivery["email"][0]["sender_name"] == "A user"

    @pytest.mark.asyncio
    async def test_quotation_amount_falls_back_to_header_amount(self, users, no_external_delivery):
        document = {
            "id": "q-1",
            "user_id": "sender",
            "quo_number": "Q-1",
            "amount": 1500,
            "recipient_phone": "9876543210",
            "recipient_email": None,
            "customers": None,
            "client_name": "Bob",
            "quotation_items": [],
        }

        await notify_document_created(users, QUOTATION, document, "sender")

        bob = next(m for m in users.rows("messages") if m["user_id"] == "bob")
        assert bob["description"] == "Asha sent you quotation Q-1 for ₹1,500."
        sender = next(m for m in users.rows("messages") if m["user_id"] == "sender")
        assert sender["title"] == "Quotation Q-1 sent to Bob"

    @pytest.mark.asyncio
    async def test_stored_recipient_fields_are_canonicalized_before_lookup(self, users, no_external_delivery):
        document = _invoice(recipient_phone="+91 98765 43210", recipient_email=" ")

        report = await notify_document_created(users, INVOICE, document, "sender")

        assert report.receiver_ids == ["bob"]
