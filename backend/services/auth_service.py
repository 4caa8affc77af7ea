"""
Supabase Auth flows exposed under /auth.

Password sign-up/sign-in and session refresh run on a fresh anon-key client;
OTP login and password reset need the admin API and run on the service
client. SDK errors are translated to AuthRequestError (400) or
AuthRejectedError (401) so routes never see gotrue exception types.
"""

import logging
from typing import Any, Dict, Optional

from backend.db.client import get_anon_client, get_supabase_client
from backend.services.otp_service import OtpService
from backend.utils.identity import email_for_storage

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# Admin listing page size when looking a user up by email
USER_PAGE_SIZE = 1000


class AuthRequestError(ValueError):
    """The request itself is unusable (missing fields, unknown user, SDK refusal)."""


class AuthRejectedError(Exception):
    """Credentials or tokens were rejected."""


def _message(e: Exception, fallback: str) -> str:
    return getattr(e, "message", None) or str(e) or fallback


def _dump(model: Any) -> Optional[Dict[str, Any]]:
    if model is None:
        return None
    if hasattr(model, "model_dump"):
        return model.model_dump(mode="json")
    return dict(model)


def _session_payload(response: Any) -> Dict[str, Any]:
    return {
        "user": _dump(getattr(response, "user", None)),
        "session": _dump(getattr(response, "session", None)),
    }


def _check_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise AuthRequestError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def register(email: str, password: str, full_name: Optional[str] = None) -> Dict[str, Any]:
    clean_email = (email or "").strip()
    if not clean_email:
        raise AuthRequestError("Email is required")
    _check_password(password)

    try:
        response = get_anon_client().auth.sign_up({
            "email": clean_email,
            "password": password,
            "options": {"data": {"full_name": (full_name or "").strip() or None}},
        })
    except Exception as e:
        raise AuthRequestError(_message(e, "Registration failed. Please try again.")) from e

    logger.info("User registered")
    return _session_payload(response)


def login(email: str, password: str) -> Dict[str, Any]:
    clean_email = (email or "").strip()
    if not clean_email or not password:
        raise AuthRequestError("Email and password are required")

    try:
        response = get_anon_client().auth.sign_in_with_password({
            "email": clean_email,
            "password": password,
        })
    except Exception as e:
        raise AuthRejectedError(_message(e, "Sign in failed. Please check your credentials.")) from e

    return _session_payload(response)


def logout(access_token: Optional[str]) -> None:
    """Revoke the caller's session when a token is supplied. Never raises."""
    if not access_token:
        return
    try:
        get_supabase_client().auth.admin.sign_out(access_token, "local")
    except Exception as e:
        logger.warning(f"Sign-out failed: {e}")


def refresh(refresh_token: str) -> Dict[str, Any]:
    if not refresh_token:
        raise AuthRequestError("Refresh token is required")
    try:
        response = get_anon_client().auth.refresh_session(refresh_token)
    except Exception as e:
        raise AuthRejectedError(_message(e, "Session refresh failed")) from e

    return {"session": _dump(getattr(response, "session", None))}


def login_with_otp(otp: OtpService, email: str, code: str) -> Dict[str, Any]:
    """
    Exchange a valid email OTP for a Supabase session.

    The code is consumed first; a magic-link hash is then minted through the
    admin API and verified straight away to obtain the session.
    """
    canonical = email_for_storage(email)
    if not canonical or not (code or "").strip():
        raise AuthRequestError("Email and code are required")

    otp.verify_otp_only(canonical, code)

    try:
        link = get_supabase_client().auth.admin.generate_link({
            "type": "magiclink",
            "email": canonical,
        })
    except Exception as e:
        raise AuthRequestError(_message(e, "Login failed. Please try again.")) from e

    properties = getattr(link, "properties", None)
    hashed_token = getattr(properties, "hashed_token", None)
    if not hashed_token:
        raise AuthRequestError(
            "Failed to generate login link. User may not exist, create an account first."
        )

    try:
        response = get_anon_client().auth.verify_otp({
            "token_hash": hashed_token,
            "type": "email",
        })
    except Exception as e:
        raise AuthRejectedError(_message(e, "Login failed. Please try again.")) from e

    return _session_payload(response)


def reset_password(otp: OtpService, reset_token: str, new_password: str) -> None:
    if not reset_token or not new_password:
        raise AuthRequestError("Reset token and new password are required")
    _check_password(new_password)

    email = otp.consume_reset_token(reset_token)
    admin = get_supabase_client().auth.admin

    try:
        users = admin.list_users(page=1, per_page=USER_PAGE_SIZE)
    except Exception as e:
        raise AuthRequestError(_message(e, "Failed to reset password. Please try again.")) from e

    user = next(
        (u for u in users or [] if (getattr(u, "email", None) or "").lower() == email),
        None,
    )
    if user is None:
        raise AuthRequestError("User not found")

    try:
        admin.update_user_by_id(user.id, {"password": new_password})
    except Exception as e:
        raise AuthRequestError(_message(e, "Failed to reset password. Please try again.")) from e

    logger.info(f"Password reset for user {user.id}")
