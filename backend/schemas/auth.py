"""
Pydantic schemas for authentication endpoints.

Session payloads are passed through from Supabase Auth unchanged, hence the
free-form user/session dicts.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from backend.schemas.profile import ProfileResponse


class RegisterRequest(BaseModel):
    email: str = Field(..., examples=["user@example.com"])
    password: str = Field(..., description="At least 6 characters")
    full_name: Optional[str] = Field(None, max_length=200)


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class SendOtpRequest(BaseModel):
    email: str


class VerifyOtpRequest(BaseModel):
    email: str
    code: str = Field(..., examples=["482913"])


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reset_token: str = Field(..., alias="resetToken")
    new_password: str = Field(..., alias="newPassword")


class SessionResponse(BaseModel):
    user: Optional[Dict[str, Any]] = Field(None, description="Supabase user object")
    session: Optional[Dict[str, Any]] = Field(
        None,
        description="Supabase session (access_token, refresh_token, expires_at, ...)"
    )


class VerifyOtpResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reset_token: str = Field(..., alias="resetToken", description="Single-use, valid 15 minutes")


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class AuthMeResponse(BaseModel):
    """
    Response for GET /auth/me - Authenticated user identity.

    Used on app boot to hydrate session state and confirm token validity.
    """
    user_id: str = Field(..., description="User UUID (from JWT 'sub' claim)")
    email: Optional[str] = Field(None, description="Email from the JWT, if present")
    phone: Optional[str] = Field(None, description="Phone from the JWT, if present")
    profile: Optional[ProfileResponse] = Field(
        None,
        description="Resolved profile (stored row filled in from token claims)"
    )
