"""
Email one-time codes and password-reset tokens.

Both live in process memory only (TTLStore). A restart invalidates every
pending code, which only means the user has to request a new one.
"""

import secrets
from typing import Callable, Optional

from backend.services.mail_service import send_otp_email
from backend.utils.identity import email_for_storage
from backend.utils.logging import get_logger
from backend.utils.ttl_store import TTLStore

logger = get_logger(__name__)

OTP_TTL_MINUTES = 10
RESET_TOKEN_TTL_MINUTES = 15


def generate_code() -> str:
    """Six-digit numeric code, never starting with 0."""
    return str(100000 + secrets.randbelow(900000))


class OtpService:
    """Issues and checks email OTP codes and the reset tokens they unlock."""

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        kwargs = {"clock": clock} if clock else {}
        self.codes: TTLStore[str] = TTLStore(OTP_TTL_MINUTES * 60, **kwargs)
        self.reset_tokens: TTLStore[str] = TTLStore(RESET_TOKEN_TTL_MINUTES * 60, **kwargs)

    @staticmethod
    def _canonical(email: str) -> str:
        canonical = email_for_storage(email)
        if canonical is None:
            raise ValueError("Please enter a valid email address")
        return canonical

    def issue_code(self, email: str) -> str:
        """Store a fresh code for the email, replacing any pending one."""
        canonical = self._canonical(email)
        code = generate_code()
        self.codes.set(canonical, code)
        return code

    def send_otp(self, email: str) -> bool:
        """
        Issue a code and email it.

        Returns:
            True if the mail was handed to SMTP, False if SMTP is unconfigured

        Raises:
            ValueError: If the email is invalid
        """
        code = self.issue_code(email)
        return send_otp_email(
            to_email=self._canonical(email),
            code=code,
            ttl_minutes=OTP_TTL_MINUTES,
        )

    def _check_code(self, email: str, code: str) -> str:
        canonical = self._canonical(email)
        if self.codes.is_expired(canonical):
            self.codes.delete(canonical)
            raise ValueError("OTP has expired. Please request a new code.")

        stored = self.codes.get(canonical)
        if stored is None:
            raise ValueError("No OTP found for this email. Please request a new code.")
        if not secrets.compare_digest(stored, (code or "").strip()):
            raise ValueError("Invalid verification code.")

        self.codes.delete(canonical)
        return canonical

    def verify_otp_only(self, email: str, code: str) -> None:
        """Consume a valid code without minting a reset token (OTP login)."""
        self._check_code(email, code)

    def verify_otp(self, email: str, code: str) -> str:
        """
        Consume a valid code and return a single-use password-reset token.

        Raises:
            ValueError: If no code is pending, it expired, or it does not match
        """
        canonical = self._check_code(email, code)
        token = secrets.token_hex(32)
        self.reset_tokens.set(token, canonical)
        return token

    def consume_reset_token(self, token: str) -> str:
        """
        Redeem a reset token. Returns the canonical email it was issued for.

        Raises:
            ValueError: If the token is unknown or expired
        """
        if self.reset_tokens.is_expired(token):
            self.reset_tokens.delete(token)
            raise ValueError("Reset token has expired.")

        email = self.reset_tokens.pop(token)
        if email is None:
            raise ValueError("Invalid or expired reset token.")
        return email

    def cleanup(self) -> int:
        removed = self.codes.purge() + self.reset_tokens.purge()
        if removed:
            logger.debug(f"Purged {removed} expired OTP entries")
        return removed


otp_service = OtpService()
