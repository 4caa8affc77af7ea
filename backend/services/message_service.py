"""
In-app message service.

Messages are the notification feed shown in the app. They are only created
by the document notification fan-out; the only later change is marking a
message as read. Messages are never deleted here.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from backend.utils.constants import MESSAGE_ICON_COLOR, MESSAGE_ICON_DOCUMENT, MESSAGES_TABLE

logger = logging.getLogger(__name__)

MESSAGE_COLUMNS = "id, title, description, timestamp, icon, icon_color, unread, created_at"


async def insert_message(
    supabase_client: Client,
    user_id: str,
    title: str,
    description: str,
    icon: str = MESSAGE_ICON_DOCUMENT,
    icon_color: str = MESSAGE_ICON_COLOR,
) -> Dict[str, Any]:
    """
    Insert one unread message into a user's feed.

    Raises:
        postgrest.exceptions.APIError: If the insert fails (callers in the
        fan-out catch it)
    """
    row = {
        "user_id": user_id,
        "title": title,
        "description": description,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "icon": icon,
        "icon_color": icon_color,
        "unread": True,
    }

    result = supabase_client.table(MESSAGES_TABLE).insert(row).execute()
    created = cast(List[Dict[str, Any]], result.data or [])
    return created[0] if created else row


async def list_messages(
    supabase_client: Client,
    user_id: str
) -> List[Dict[str, Any]]:
    """
    Fetch the user's messages, newest first.
    """
    result = (
        supabase_client.table(MESSAGES_TABLE)
        .select(MESSAGE_COLUMNS)
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )

    messages = cast(List[Dict[str, Any]], result.data or [])
    logger.info(f"Found {len(messages)} messages for user {user_id}")
    return messages


async def mark_message_read(
    supabase_client: Client,
    user_id: str,
    message_id: str
) -> Optional[Dict[str, Any]]:
    """
    Flip a message to read.

    Returns:
        The updated message, or None if it does not exist or is not the user's
    """
    result = (
        supabase_client.table(MESSAGES_TABLE)
        .update({"unread": False})
        .eq("id", message_id)
        .eq("user_id", user_id)
        .execute()
    )

    if not result.data:
        return None
    return cast(Dict[str, Any], result.data[0])
