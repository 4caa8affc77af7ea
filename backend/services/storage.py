"""
Supabase Storage service for profile avatars.

Avatars arrive as base64 (optionally a `data:image/<ext>;base64,` URI), are
stored at {user_id}/avatar.{ext} in the public avatars bucket, overwriting any
previous upload, and the resulting public URL is saved on the profile.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, cast

from supabase import Client

from backend.config import settings
from backend.utils.constants import PROFILES_TABLE

logger = logging.getLogger(__name__)

MAX_AVATAR_BYTES = 5 * 1024 * 1024
DEFAULT_AVATAR_EXT = "jpg"

_DATA_URI = re.compile(r"^data:image/(\w+);base64,(.+)$", re.DOTALL)


@dataclass(frozen=True)
class DecodedImage:
    data: bytes
    ext: str

    @property
    def content_type(self) -> str:
        return f"image/{self.ext}"


def decode_image(image_base64: Optional[str]) -> DecodedImage:
    """
    Decode a base64 payload or data URI.

    Raises:
        ValueError: If the payload is empty, not base64, or larger than 5 MB
    """
    raw = (image_base64 or "").strip()
    if not raw:
        raise ValueError("imageBase64 is required")

    match = _DATA_URI.match(raw)
    ext = match.group(1).lower() if match else DEFAULT_AVATAR_EXT
    encoded = match.group(2) if match else raw

    try:
        data = base64.b64decode(encoded, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ValueError("imageBase64 is not valid base64") from e

    if not data:
        raise ValueError("imageBase64 is required")
    if len(data) > MAX_AVATAR_BYTES:
        raise ValueError("Image must be less than 5MB")

    return DecodedImage(data=data, ext=ext)


def _ensure_bucket(supabase_client: Client, bucket: str) -> None:
    try:
        buckets = supabase_client.storage.list_buckets()
        if not any(getattr(b, "name", None) == bucket for b in buckets or []):
            supabase_client.storage.create_bucket(bucket, options={"public": True})
            logger.info(f"Created storage bucket {bucket}")
    except Exception as e:
        # Upload below reports the real problem if the bucket is really missing
        logger.warning(f"Could not verify storage bucket {bucket}: {e}")


async def upload_avatar(
    supabase_client: Client,
    user_id: str,
    image_base64: Optional[str],
) -> Dict[str, Any]:
    """
    Store the user's avatar and point profiles.avatar_url at it.

    Returns:
        The updated profile row

    Raises:
        ValueError: If the image payload is invalid
        Exception: If the upload or profile update fails
    """
    image = decode_image(image_base64)
    bucket = settings.SUPABASE_AVATAR_BUCKET
    storage_path = f"{user_id}/avatar.{image.ext}"

    logger.info(
        f"Uploading avatar for user {user_id}: size={len(image.data)} bytes, "
        f"content_type={image.content_type}"
    )

    _ensure_bucket(supabase_client, bucket)

    supabase_client.storage.from_(bucket).upload(
        path=storage_path,
        file=image.data,
        file_options={"content-type": image.content_type, "upsert": "true"},
    )

    public_url = supabase_client.storage.from_(bucket).get_public_url(storage_path)

    result = (
        supabase_client.table(PROFILES_TABLE)
        .update({"avatar_url": public_url})
        .eq("id", user_id)
        .execute()
    )
    if not result.data:
        raise Exception("Failed to update profile avatar: no data returned")

    return cast(Dict[str, Any], result.data[0])
