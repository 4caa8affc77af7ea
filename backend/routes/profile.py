"""
Profile API endpoints.

Provides endpoints for the caller's own profile:
- GET /profiles/me - Resolved profile (stored row + token identity)
- PATCH /profiles/me - Update profile fields
- POST /profiles/me/avatar - Upload avatar image

All endpoints require valid Bearer token authentication.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from postgrest.exceptions import APIError

from backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from backend.db.client import get_supabase_client
from backend.schemas.profile import (
    AvatarUploadRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
)
from backend.services.profile_service import (
    get_profile_view,
    resolve_caller_identity,
    update_user_profile,
)
from backend.services.storage import upload_avatar
from backend.utils.errors import database_error, http_error, internal_error, invalid_request, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get(
    "/me",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Get own profile",
    description="""
    Retrieve the authenticated user's profile.

    Missing phone/email/name are filled from the access token claims, and the
    stored row is created or completed on the fly when it lags behind.
    """
)
async def get_my_profile(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ProfileResponse:
    logger.info(f"Fetching profile for user {auth_user.user_id}")

    supabase_client = get_supabase_client()

    try:
        profile = await get_profile_view(supabase_client, auth_user)
        return ProfileResponse.model_validate(profile)

    except APIError as e:
        logger.error(f"Database error fetching profile for user {auth_user.user_id}: {e}")
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to fetch profile for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve profile")


@router.patch(
    "/me",
    response_model=ProfileUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update own profile",
    description="""
    Partially update the authenticated user's profile.

    - Only fields present in the body are written
    - phone is stored as its last 10 digits, email trimmed and lowercased
    - An invalid non-empty phone or email returns 400
    """
)
async def update_my_profile(
    request: ProfileUpdateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ProfileUpdateResponse:
    updates = request.model_dump(exclude_unset=True)
    logger.info(f"Updating profile for user {auth_user.user_id}: {list(updates.keys())}")

    supabase_client = get_supabase_client()

    try:
        # Make sure the row exists before updating it
        await resolve_caller_identity(supabase_client, auth_user)

        updated_profile = await update_user_profile(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            **updates
        )

        if not updated_profile:
            raise not_found("Profile not found")

        return ProfileUpdateResponse(
            status="UPDATED",
            profile=ProfileResponse.model_validate(updated_profile),
            message="Profile updated successfully"
        )

    except HTTPException:
        raise
    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        logger.error(f"Database error updating profile for user {auth_user.user_id}: {e}")
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to update profile for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("update_error", "Failed to update profile")


@router.post(
    "/me/avatar",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload avatar",
    description="""
    Upload the caller's avatar as base64 or a data URI (max 5 MB).

    The image is stored in the public avatars bucket at {user_id}/avatar.{ext},
    replacing any previous one, and profiles.avatar_url is updated.
    """
)
async def upload_my_avatar(
    request: AvatarUploadRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ProfileResponse:
    logger.info(f"Avatar upload for user {auth_user.user_id}")

    supabase_client = get_supabase_client()

    try:
        await resolve_caller_identity(supabase_client, auth_user)
        profile = await upload_avatar(supabase_client, auth_user.user_id, request.image_base64)
        return ProfileResponse.model_validate(profile)

    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Avatar upload failed for user {auth_user.user_id}: {e}", exc_info=True)
        # Storage SDK errors carry a readable message
        raise http_error(status.HTTP_400_BAD_REQUEST, "upload_error", str(e) or "Failed to upload avatar")
