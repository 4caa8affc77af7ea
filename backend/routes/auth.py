"""
Auth API endpoints.

Public endpoints (no bearer token):
- POST /auth/register, /auth/login, /auth/logout, /auth/refresh
- POST /auth/send-otp, /auth/verify-otp, /auth/login-with-otp
- POST /auth/reset-password

Authenticated:
- GET /auth/me - Caller identity and resolved profile
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from backend.db.client import get_supabase_client
from backend.schemas.auth import (
    AuthMeResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SendOtpRequest,
    SessionResponse,
    SuccessResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from backend.schemas.profile import ProfileResponse
from backend.services import auth_service
from backend.services.auth_service import AuthRejectedError
from backend.services.otp_service import otp_service
from backend.services.profile_service import get_profile_view
from backend.utils.errors import http_error, invalid_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _unauthorized(e: Exception) -> HTTPException:
    return http_error(status.HTTP_401_UNAUTHORIZED, "unauthorized", str(e))


@router.post("/register", response_model=SessionResponse, summary="Register with email and password")
async def register(request: RegisterRequest) -> SessionResponse:
    try:
        payload = await run_in_threadpool(
            auth_service.register, request.email, request.password, request.full_name
        )
        return SessionResponse(**payload)
    except ValueError as e:
        raise invalid_request(str(e))


@router.post("/login", response_model=SessionResponse, summary="Sign in with email and password")
async def login(request: LoginRequest) -> SessionResponse:
    try:
        payload = await run_in_threadpool(auth_service.login, request.email, request.password)
        return SessionResponse(**payload)
    except AuthRejectedError as e:
        raise _unauthorized(e)
    except ValueError as e:
        raise invalid_request(str(e))


@router.post("/logout", response_model=SuccessResponse, summary="Sign out")
async def logout(authorization: Annotated[Optional[str], Header()] = None) -> SuccessResponse:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    await run_in_threadpool(auth_service.logout, token)
    return SuccessResponse(success=True)


@router.post("/refresh", response_model=SessionResponse, summary="Refresh session")
async def refresh(request: RefreshRequest) -> SessionResponse:
    try:
        payload = await run_in_threadpool(auth_service.refresh, request.refresh_token)
        return SessionResponse(**payload)
    except AuthRejectedError as e:
        raise _unauthorized(e)
    except ValueError as e:
        raise invalid_request(str(e))


@router.post(
    "/send-otp",
    response_model=SuccessResponse,
    summary="Email a verification code",
    description="Sends a 6-digit code valid for 10 minutes. A new request replaces the pending code."
)
async def send_otp(request: SendOtpRequest) -> SuccessResponse:
    try:
        otp_service.cleanup()
        await run_in_threadpool(otp_service.send_otp, request.email)
        return SuccessResponse(success=True, message="Verification code sent to your email")
    except ValueError as e:
        raise invalid_request(str(e))
    except Exception as e:
        logger.error(f"Failed to send OTP: {e}", exc_info=True)
        raise invalid_request("Failed to send verification code")


@router.post(
    "/verify-otp",
    response_model=VerifyOtpResponse,
    summary="Exchange a code for a password-reset token",
)
async def verify_otp(request: VerifyOtpRequest) -> VerifyOtpResponse:
    if not request.email.strip() or not request.code.strip():
        raise invalid_request("Email and code are required")
    try:
        return VerifyOtpResponse(reset_token=otp_service.verify_otp(request.email, request.code))
    except ValueError as e:
        raise invalid_request(str(e))


@router.post("/login-with-otp", response_model=SessionResponse, summary="Sign in with an email code")
async def login_with_otp(request: VerifyOtpRequest) -> SessionResponse:
    try:
        payload = await run_in_threadpool(
            auth_service.login_with_otp, otp_service, request.email, request.code
        )
        return SessionResponse(**payload)
    except AuthRejectedError as e:
        raise _unauthorized(e)
    except ValueError as e:
        raise invalid_request(str(e))


@router.post("/reset-password", response_model=SuccessResponse, summary="Set a new password")
async def reset_password(request: ResetPasswordRequest) -> SuccessResponse:
    try:
        await run_in_threadpool(
            auth_service.reset_password, otp_service, request.reset_token, request.new_password
        )
        return SuccessResponse(success=True, message="Password reset successfully")
    except ValueError as e:
        raise invalid_request(str(e))


@router.get(
    "/me",
    response_model=AuthMeResponse,
    status_code=status.HTTP_200_OK,
    summary="Get authenticated user identity",
    description="""
    Get the authenticated user's core identity for session hydration.

    Returns the JWT identity plus the resolved profile. Profile lookup
    failures are logged and reported as a null profile.
    """
)
async def get_auth_me(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AuthMeResponse:
    profile: Optional[ProfileResponse] = None
    try:
        view = await get_profile_view(get_supabase_client(), auth_user)
        profile = ProfileResponse.model_validate(view)
    except Exception as e:
        logger.error(f"Error fetching profile for auth/me: {e}")

    return AuthMeResponse(
        user_id=auth_user.user_id,
        email=auth_user.email,
        phone=auth_user.phone,
        profile=profile,
    )
