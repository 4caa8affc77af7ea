"""
Tests for phone/email canonicalization.
"""

import pytest

from backend.utils.identity import (
    Identity,
    email_for_storage,
    normalize_email,
    normalize_phone,
    phone_for_storage,
)


class TestPhone:

    @pytest.mark.parametrize("raw", [
        "+91-98765 43210",
        "9876543210",
        "098765-43210",
        "(987) 654-3210",
        "+91 98765 43210",
    ])
    def test_formatting_variants_share_canonical_form(self, raw):
        assert normalize_phone(raw) == "9876543210"
        assert phone_for_storage(raw) == "9876543210"

    def test_short_number(self):
        assert normalize_phone("12345") == ""
        assert phone_for_storage("12345") is None

    def test_none_and_empty(self):
        assert normalize_phone(None) == ""
        assert phone_for_storage("") is None

    def test_normalization_is_idempotent(self):
        once = phone_for_storage("+1 (415) 555-0100 ext")
        assert once == "4155550100"
        assert phone_for_storage(once) == once

    def test_numbers_are_accepted(self):
        assert phone_for_storage(919876543210) == "9876543210"


class TestEmail:

    def test_trims_and_lowercases(self):
        assert normalize_email("  Bob@Example.COM ") == "bob@example.com"
        assert email_for_storage("  Bob@Example.COM ") == "bob@example.com"

    @pytest.mark.parametrize("raw", ["not-an-email", "a@b", "a b@c.d", "@example.com"])
    def test_invalid_shapes(self, raw):
        assert email_for_storage(raw) is None

    def test_non_strings(self):
        assert normalize_email(None) == ""
        assert normalize_email(42) == ""


class TestIdentity:

    def test_from_raw_normalizes_both_fields(self):
        identity = Identity.from_raw(phone="+91-98765 43210", email=" X@Y.io ")
        assert identity == Identity(phone="9876543210", email="x@y.io")
        assert not identity.is_empty

    def test_invalid_fields_become_none(self):
        identity = Identity.from_raw(phone="123", email="nope")
        assert identity.phone is None
        assert identity.email is None
        assert identity.is_empty
