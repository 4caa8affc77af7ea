"""
User profile service.

Handles fetching and updating user profile data from Supabase, and resolving
the caller's canonical contact identity (phone, email).

Profiles are 1:1 with auth.users (profiles.id = auth user id). A database
trigger normally creates the row at sign-up, but it can lag behind or miss
the phone/email, so the identity resolver treats the row as the least fresh
source and repairs it in the background of the request:

    read profile  ->  resolve_identity()  (pure)
                  ->  reconcile_profile() (best-effort write, never raises)
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, cast

from supabase import Client

from backend.auth.dependencies import AuthenticatedUser
from backend.utils.constants import PROFILES_TABLE
from backend.utils.identity import Identity, email_for_storage, phone_for_storage

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "id, full_name, phone, email, avatar_url, pincode, expo_push_token"

# Fields a user may change through PATCH /profiles/me
EDITABLE_FIELDS = ("full_name", "phone", "email", "pincode", "expo_push_token")


async def get_user_profile(
    supabase_client: Client,
    user_id: str
) -> Optional[Dict[str, Any]]:
    """
    Fetch the user's profile row.

    Returns:
        The profile dict, or None if the row does not exist yet
    """
    logger.debug(f"Fetching profile for user {user_id}")

    result = (
        supabase_client.table(PROFILES_TABLE)
        .select(PROFILE_COLUMNS)
        .eq("id", user_id)
        .limit(1)
        .execute()
    )

    if not result.data:
        logger.info(f"Profile not found for user {user_id}")
        return None

    return cast(Dict[str, Any], result.data[0])


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def normalize_profile_updates(updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert raw PATCH fields to their stored form.

    Phone and email go through the canonical storage normalizers. An empty
    value clears the field; a non-empty value that cannot be normalized is
    rejected.

    Raises:
        ValueError: If a provided phone or email is invalid
    """
    normalized: Dict[str, Any] = {}

    for key, value in updates.items():
        if key not in EDITABLE_FIELDS:
            continue

        text = _clean_text(value)

        if key == "phone":
            if text is None:
                normalized["phone"] = None
                continue
            phone = phone_for_storage(text)
            if phone is None:
                raise ValueError("Phone number must contain at least 10 digits")
            normalized["phone"] = phone
        elif key == "email":
            if text is None:
                normalized["email"] = None
                continue
            email = email_for_storage(text)
            if email is None:
                raise ValueError("Please enter a valid email address")
            normalized["email"] = email
        else:
            normalized[key] = text

    return normalized


async def update_user_profile(
    supabase_client: Client,
    user_id: str,
    **updates: Any
) -> Optional[Dict[str, Any]]:
    """
    Update user profile fields.

    Args:
        supabase_client: Supabase client
        user_id: The authenticated user's ID
        **updates: Raw fields to update (full_name, phone, email, pincode, expo_push_token)

    Returns:
        The updated profile record, or the current one when nothing changes

    Raises:
        ValueError: If phone or email is invalid
    """
    normalized = normalize_profile_updates(updates)

    if not normalized:
        return await get_user_profile(supabase_client, user_id)

    logger.info(f"Updating profile for user {user_id}: {list(normalized.keys())}")

    result = (
        supabase_client.table(PROFILES_TABLE)
        .update(normalized)
        .eq("id", user_id)
        .execute()
    )

    if not result.data:
        return None

    updated_profile: Dict[str, Any] = cast(Dict[str, Any], result.data[0])
    logger.info(f"Profile updated successfully for user {user_id}")

    return updated_profile


# --- Identity resolution ---

def auth_identity(auth_user: AuthenticatedUser) -> Identity:
    """
    Identity carried by the access token.

    user_metadata wins over the primary auth fields because the app collects
    phone/email at sign-up into metadata, while the primary fields are only
    set for phone/email-confirmed accounts.
    """
    meta = auth_user.user_metadata or {}
    phone = phone_for_storage(meta.get("phone")) or phone_for_storage(auth_user.phone)
    email = email_for_storage(meta.get("email")) or email_for_storage(auth_user.email)
    return Identity(phone=phone, email=email)


def resolve_identity(
    auth_user: AuthenticatedUser,
    profile: Optional[Dict[str, Any]]
) -> Identity:
    """
    Compute the caller's canonical identity.

    Precedence per field: token metadata -> token primary field -> stored profile.
    Pure: no I/O.
    """
    fresh = auth_identity(auth_user)
    stored = profile or {}

    return Identity(
        phone=fresh.phone or phone_for_storage(stored.get("phone")),
        email=fresh.email or email_for_storage(stored.get("email")),
    )


def plan_profile_reconciliation(
    auth_user: AuthenticatedUser,
    profile: Optional[Dict[str, Any]]
) -> Optional[Tuple[str, Dict[str, Any]]]:
    """
    Decide which corrective write (if any) the profile row needs.

    Returns:
        ("create", row) when the row is missing,
        ("update", fields) when the row lacks phone/email the token has,
        None when the row is already complete.
    """
    fresh = auth_identity(auth_user)

    if profile is None:
        row: Dict[str, Any] = {
            "id": auth_user.user_id,
            "phone": fresh.phone,
            "email": fresh.email,
        }
        full_name = _clean_text((auth_user.user_metadata or {}).get("full_name"))
        if full_name:
            row["full_name"] = full_name
        return ("create", row)

    fields: Dict[str, Any] = {}
    if not profile.get("phone") and fresh.phone:
        fields["phone"] = fresh.phone
    if not profile.get("email") and fresh.email:
        fields["email"] = fresh.email

    if not fields:
        return None
    return ("update", fields)


async def reconcile_profile(
    supabase_client: Client,
    auth_user: AuthenticatedUser,
    profile: Optional[Dict[str, Any]]
) -> Optional[Exception]:
    """
    Apply the corrective write planned for the profile row.

    Never raises: the caller can always continue with the identity computed
    from the token. The error, if any, is returned for observability.
    """
    plan = plan_profile_reconciliation(auth_user, profile)
    if plan is None:
        return None

    action, payload = plan

    try:
        if action == "create":
            # A sign-up trigger may be inserting the same row concurrently
            supabase_client.table(PROFILES_TABLE).upsert(
                payload, on_conflict="id", ignore_duplicates=True
            ).execute()
            logger.info(f"Created missing profile for user {auth_user.user_id}")
        else:
            supabase_client.table(PROFILES_TABLE).update(payload).eq(
                "id", auth_user.user_id
            ).execute()
            logger.info(
                f"Synced profile fields {list(payload.keys())} for user {auth_user.user_id}"
            )
        return None
    except Exception as e:
        logger.warning(f"Profile {action} sync failed for user {auth_user.user_id}: {e}")
        return e


async def resolve_caller_identity(
    supabase_client: Client,
    auth_user: AuthenticatedUser
) -> Identity:
    """
    Read, then reconcile: return the caller's identity and heal the profile row.

    Storage errors are logged and swallowed; if the profile cannot be read the
    identity falls back to the token claims and no repair is attempted.
    """
    try:
        profile = await get_user_profile(supabase_client, auth_user.user_id)
    except Exception as e:
        logger.warning(f"Could not read profile for user {auth_user.user_id}: {e}")
        return resolve_identity(auth_user, None)

    await reconcile_profile(supabase_client, auth_user, profile)
    return resolve_identity(auth_user, profile)


async def get_profile_view(
    supabase_client: Client,
    auth_user: AuthenticatedUser
) -> Dict[str, Any]:
    """
    Profile as shown to its owner: stored row merged with token identity.
    """
    profile = await get_user_profile(supabase_client, auth_user.user_id)
    await reconcile_profile(supabase_client, auth_user, profile)

    identity = resolve_identity(auth_user, profile)
    stored = profile or {}
    meta = auth_user.user_metadata or {}

    return {
        "id": auth_user.user_id,
        "full_name": stored.get("full_name") or _clean_text(meta.get("full_name")),
        "phone": identity.phone,
        "email": identity.email,
        "avatar_url": stored.get("avatar_url"),
        "pincode": stored.get("pincode"),
    }


async def get_push_tokens(
    supabase_client: Client,
    user_ids: List[str]
) -> Dict[str, str]:
    """
    Map user_id -> expo_push_token for the given users that have one.
    """
    if not user_ids:
        return {}

    result = (
        supabase_client.table(PROFILES_TABLE)
        .select("id, expo_push_token")
        .in_("id", user_ids)
        .execute()
    )

    tokens: Dict[str, str] = {}
    for row in cast(List[Dict[str, Any]], result.data or []):
        token = _clean_text(row.get("expo_push_token"))
        if token:
            tokens[str(row.get("id"))] = token
    return tokens


async def get_display_name(
    supabase_client: Client,
    user_id: str,
    default: str
) -> str:
    result = (
        supabase_client.table(PROFILES_TABLE)
        .select("full_name")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    if result.data:
        name = _clean_text(cast(Dict[str, Any], result.data[0]).get("full_name"))
        if name:
            return name
    return default
