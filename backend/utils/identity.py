"""
Phone and email canonicalization.

These helpers are the single source of truth for the canonical form of a
contact identity. Every comparison and every write of a phone number or email
(profiles, customers, invoice/quotation recipients, OTP keys) MUST go through
them, otherwise recipient matching silently stops working.

Canonical forms:
- phone: the rightmost 10 digits of the digits found in the raw value
- email: trimmed, lowercased, shaped like local@domain.tld
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

PHONE_DIGITS = 10

_NON_DIGITS_RE = re.compile(r"\D")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _digits(raw: Any) -> str:
    if raw is None:
        return ""
    return _NON_DIGITS_RE.sub("", str(raw))


def normalize_phone(raw: Any) -> str:
    """
    Lenient phone normalization used for comparisons.

    Returns the last 10 digits, or an empty string when fewer than 10 digits
    are present.
    """
    digits = _digits(raw)
    if len(digits) < PHONE_DIGITS:
        return ""
    return digits[-PHONE_DIGITS:]


def phone_for_storage(raw: Any) -> Optional[str]:
    """
    Strict phone normalization used before persisting.

    >>> phone_for_storage("+91 98765-43210")
    '9876543210'
    >>> phone_for_storage("12345") is None
    True
    """
    digits = _digits(raw)
    if len(digits) < PHONE_DIGITS:
        return None
    return digits[-PHONE_DIGITS:]


def normalize_email(raw: Any) -> str:
    """Lowercase and trim; empty string for anything that is not a non-empty str."""
    if not raw or not isinstance(raw, str):
        return ""
    return raw.strip().lower()


def email_for_storage(raw: Any) -> Optional[str]:
    """
    Normalize and validate an email before persisting.

    >>> email_for_storage(" User@Example.COM ")
    'user@example.com'
    >>> email_for_storage("not-an-email") is None
    True
    """
    email = normalize_email(raw)
    if not email or not _EMAIL_RE.match(email):
        return None
    return email


@dataclass(frozen=True)
class Identity:
    """A canonical contact identity. Either field may be None."""
    phone: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_raw(cls, phone: Any = None, email: Any = None) -> "Identity":
        return cls(phone=phone_for_storage(phone), email=email_for_storage(email))

    @property
    def is_empty(self) -> bool:
        return not self.phone and not self.email
