"""
Pydantic schemas for profile endpoints.

Profiles are 1:1 with auth.users (profiles.id = auth user id). Phone and
email are returned in canonical form (10-digit phone, lowercased email).
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


# --- Profile response models ---

class ProfileResponse(BaseModel):
    """
    Response for GET /profiles/me.

    Missing profile fields are filled from the auth token, so a user whose
    profile row has not been created yet still gets a usable identity.
    """
    id: str = Field(..., description="User UUID (from auth.users)")
    full_name: Optional[str] = Field(None, description="Display name")
    phone: Optional[str] = Field(
        None,
        description="Canonical phone (last 10 digits)",
        examples=["9876543210"]
    )
    email: Optional[str] = Field(None, description="Canonical (lowercased) email")
    avatar_url: Optional[str] = Field(None, description="Public URL of the avatar image")
    pincode: Optional[str] = Field(None, description="Postal code")


# --- Profile update models ---

class ProfileUpdateRequest(BaseModel):
    """
    Request to update the caller's profile.

    Only fields present in the body are written. An empty string or null
    clears the field; a non-empty phone/email that cannot be normalized is
    rejected with 400.
    """
    full_name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(
        None,
        description="Any format; stored as the last 10 digits",
        examples=["+91 98765 43210"]
    )
    email: Optional[str] = Field(None, description="Stored trimmed and lowercased")
    pincode: Optional[str] = Field(None, max_length=20)
    expo_push_token: Optional[str] = Field(
        None,
        description="Expo push token of the user's device",
        examples=["ExponentPushToken[xxxxxxxxxxxxxxxxxxxxxx]"]
    )


class ProfileUpdateResponse(BaseModel):
    status: str = Field("UPDATED", description="Indicates the profile was successfully updated")
    profile: ProfileResponse = Field(..., description="Complete updated profile details")
    message: str = Field(
        ...,
        description="Success message",
        examples=["Profile updated successfully"]
    )


# --- Avatar ---

class AvatarUploadRequest(BaseModel):
    """Avatar image as plain base64 or a data:image/<ext>;base64,... URI (max 5 MB)."""
    model_config = ConfigDict(populate_by_name=True)

    image_base64: str = Field(..., alias="imageBase64")
