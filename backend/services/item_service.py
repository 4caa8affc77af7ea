"""
Catalogue item service.

Items are reusable products/services a user picks from when building invoice
or quotation line items.
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from backend.utils.constants import ITEMS_TABLE

logger = logging.getLogger(__name__)


async def get_user_items(supabase_client: Client, user_id: str) -> List[Dict[str, Any]]:
    result = (
        supabase_client.table(ITEMS_TABLE)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return cast(List[Dict[str, Any]], result.data or [])


async def get_item_by_id(
    supabase_client: Client,
    user_id: str,
    item_id: str
) -> Optional[Dict[str, Any]]:
    result = (
        supabase_client.table(ITEMS_TABLE)
        .select("*")
        .eq("id", item_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return cast(Dict[str, Any], result.data[0])


async def create_item(
    supabase_client: Client,
    user_id: str,
    name: str,
    rate: Optional[float] = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a catalogue item.

    Raises:
        ValueError: If name is empty
    """
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValueError("Name is required")

    payload = {
        "user_id": user_id,
        "name": clean_name,
        "rate": rate if rate is not None else 0,
        "description": (description or "").strip() or None,
    }

    result = supabase_client.table(ITEMS_TABLE).insert(payload).execute()
    if not result.data:
        raise Exception("Failed to create item: no data returned")

    logger.info(f"Item created for user {user_id}")
    return cast(Dict[str, Any], result.data[0])


async def update_item(
    supabase_client: Client,
    user_id: str,
    item_id: str,
    **updates: Any
) -> Optional[Dict[str, Any]]:
    if "name" in updates:
        updates["name"] = (updates["name"] or "").strip()
        if not updates["name"]:
            raise ValueError("Name is required")

    result = (
        supabase_client.table(ITEMS_TABLE)
        .update(updates)
        .eq("id", item_id)
        .eq("user_id", user_id)
        .execute()
    )
    if not result.data:
        return None
    return cast(Dict[str, Any], result.data[0])


async def delete_item(supabase_client: Client, user_id: str, item_id: str) -> bool:
    result = (
        supabase_client.table(ITEMS_TABLE)
        .delete()
        .eq("id", item_id)
        .eq("user_id", user_id)
        .execute()
    )
    return bool(result.data)
