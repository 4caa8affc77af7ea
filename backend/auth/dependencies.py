"""
FastAPI dependency functions for authentication.

Verifies the Supabase access token and exposes the caller's identity to the
route handlers.

Uses Supabase's JWT Signing Keys system with ECC (P-256) public key verification.
Besides the user id, Supabase access tokens carry the user's primary email,
phone and user_metadata claims; those are what the profile resolver treats as
the always-fresh identity of the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, Optional

from fastapi import Header, HTTPException, status
from jwt import PyJWKClient, decode
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError, PyJWKClientError

from backend.config import settings

logger = logging.getLogger(__name__)

# Initialize JWKS client for fetching and caching Supabase's public keys
_jwks_client: PyJWKClient | None = None


@dataclass
class AuthenticatedUser:
    """
    Represents an authenticated user with their token.

    Attributes:
        user_id: The user's UUID from the JWT token's 'sub' claim
        access_token: The full JWT access token
        email: Primary email from the auth provider, if any
        phone: Primary phone from the auth provider, if any
        user_metadata: Free-form metadata set at sign-up (full_name, phone, email)
    """
    user_id: str
    access_token: str
    email: Optional[str] = None
    phone: Optional[str] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict)


def get_jwks_client() -> PyJWKClient:
    """
    Get or create the JWKS client instance.

    Lazy initialization ensures we only create the client when needed.
    The client caches JWKS responses to minimize network calls.

    Raises:
        ValueError: If SUPABASE_URL is not configured
    """
    global _jwks_client

    if _jwks_client is None:
        jwks_url = settings.SUPABASE_JWKS_URL
        if not jwks_url:
            raise ValueError(
                "SUPABASE_URL is not configured. "
                "Cannot construct JWKS URL for JWT verification."
            )

        logger.info(f"Initializing JWKS client with URL: {jwks_url}")
        _jwks_client = PyJWKClient(
            jwks_url,
            cache_keys=True,
            max_cached_keys=16,
        )

    return _jwks_client


def _unauthorized(error: str, details: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "details": details}
    )


def _extract_bearer_token(authorization: str | None) -> str:
    if not authorization:
        logger.warning("Missing Authorization header")
        raise _unauthorized("unauthorized", "Missing Authorization header")

    # Extract token from "Bearer <token>" format
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Invalid Authorization header format")
        raise _unauthorized("unauthorized", "Invalid Authorization header format")

    return parts[1]


def decode_supabase_token(token: str) -> Dict[str, Any]:
    """
    Verify a Supabase access token and return its claims.

    Raises:
        jwt.exceptions.InvalidTokenError (and subclasses) on any verification failure.
    """
    jwks_client = get_jwks_client()

    # Fetch the signing key from JWKS based on the token's 'kid' header
    signing_key = jwks_client.get_signing_key_from_jwt(token)

    # Supabase tokens use an issuer that includes the /auth/v1 path
    issuer = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1"

    return decode(
        token,
        signing_key.key,
        algorithms=["ES256"],
        audience="authenticated",
        issuer=issuer,
        options={
            "verify_signature": True,
            "verify_exp": True,
            "verify_aud": True,
            "verify_iss": True,
        }
    )


def user_from_claims(payload: Dict[str, Any], access_token: str) -> AuthenticatedUser:
    """Build an AuthenticatedUser from verified token claims."""
    user_id = payload.get("sub")
    if not user_id:
        logger.error("Token payload missing 'sub' claim")
        raise _unauthorized("unauthorized", "Invalid token: missing user ID")

    metadata = payload.get("user_metadata")

    return AuthenticatedUser(
        user_id=str(user_id),
        access_token=access_token,
        email=payload.get("email") or None,
        phone=payload.get("phone") or None,
        user_metadata=metadata if isinstance(metadata, dict) else {},
    )


async def get_authenticated_user(
    authorization: Annotated[str | None, Header()] = None
) -> AuthenticatedUser:
    """
    Verify the bearer token and return the authenticated caller.

    This is a FastAPI dependency that:
    1. Reads Authorization header (format: "Bearer <token>")
    2. Verifies token signature, audience, issuer and expiration
    3. Returns the caller's id plus the identity claims carried by the token

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired

    Security:
        - This is the ONLY source of truth for user_id
        - Any user_id sent in a request body is ignored

    Usage:
        @router.get("/invoices")
        async def list_invoices(
            auth_user: AuthenticatedUser = Depends(get_authenticated_user)
        ):
            ...
    """
    token = _extract_bearer_token(authorization)

    try:
        payload = decode_supabase_token(token)
        user = user_from_claims(payload, token)

        logger.info(f"Token verified successfully for user_id={user.user_id}")
        return user

    except HTTPException:
        raise

    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise _unauthorized("token_expired", "Authentication token has expired")

    except PyJWKClientError as e:
        logger.error(f"JWKS client error: {str(e)}")
        raise _unauthorized("jwks_error", "Unable to verify token signature")

    except InvalidTokenError as e:
        logger.warning(f"Invalid token: {str(e)}")
        raise _unauthorized("invalid_token", "Invalid authentication token")

    except Exception as e:
        logger.error(f"Unexpected error during token verification: {str(e)}")
        raise _unauthorized("unauthorized", "Token verification failed")
