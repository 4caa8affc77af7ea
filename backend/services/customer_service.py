"""
Customer service.

Customers belong to exactly one user. Their phone and email are the source of
an invoice/quotation's recipient identity, so both are stored in canonical
form only.
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from backend.utils.constants import CUSTOMERS_TABLE, DEFAULT_CUSTOMER_COLOR
from backend.utils.identity import email_for_storage, phone_for_storage

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def normalize_contact_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Canonicalize phone/email in a customer payload.

    Empty values are stored as NULL. Non-empty values that cannot be
    normalized are rejected.

    Raises:
        ValueError: If phone or email is invalid
    """
    normalized = dict(fields)

    if "phone" in fields:
        raw = _clean(fields.get("phone"))
        phone = phone_for_storage(raw) if raw else None
        if raw and phone is None:
            raise ValueError("Phone number must contain at least 10 digits")
        normalized["phone"] = phone

    if "email" in fields:
        raw = _clean(fields.get("email"))
        email = email_for_storage(raw) if raw else None
        if raw and email is None:
            raise ValueError("Please enter a valid email address")
        normalized["email"] = email

    return normalized


async def get_user_customers(
    supabase_client: Client,
    user_id: str
) -> List[Dict[str, Any]]:
    result = (
        supabase_client.table(CUSTOMERS_TABLE)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )

    customers = cast(List[Dict[str, Any]], result.data or [])
    logger.info(f"Found {len(customers)} customers for user {user_id}")
    return customers


async def get_customer_by_id(
    supabase_client: Client,
    user_id: str,
    customer_id: str
) -> Optional[Dict[str, Any]]:
    """
    Fetch a customer owned by the user.

    Returns:
        Customer dict, or None if not found or owned by someone else
    """
    result = (
        supabase_client.table(CUSTOMERS_TABLE)
        .select("*")
        .eq("id", customer_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )

    if not result.data:
        logger.warning(f"Customer {customer_id} not found for user {user_id}")
        return None

    return cast(Dict[str, Any], result.data[0])


async def create_customer(
    supabase_client: Client,
    user_id: str,
    name: str,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    initials: Optional[str] = None,
    color: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a customer with canonical contact fields.

    Raises:
        ValueError: If name is empty or phone/email is invalid
    """
    clean_name = _clean(name)
    if not clean_name:
        raise ValueError("Name is required")

    payload = normalize_contact_fields({
        "user_id": user_id,
        "name": clean_name,
        "phone": phone,
        "email": email,
        "initials": _clean(initials),
        "color": color or DEFAULT_CUSTOMER_COLOR,
    })

    logger.info(f"Creating customer for user {user_id}")

    result = supabase_client.table(CUSTOMERS_TABLE).insert(payload).execute()

    if not result.data:
        raise Exception("Failed to create customer: no data returned")

    return cast(Dict[str, Any], result.data[0])


async def update_customer(
    supabase_client: Client,
    user_id: str,
    customer_id: str,
    **updates: Any
) -> Optional[Dict[str, Any]]:
    """
    Update a customer owned by the user.

    Raises:
        ValueError: If name is blanked or phone/email is invalid
    """
    if "name" in updates:
        updates["name"] = _clean(updates["name"])
        if not updates["name"]:
            raise ValueError("Name is required")

    payload = normalize_contact_fields(updates)

    result = (
        supabase_client.table(CUSTOMERS_TABLE)
        .update(payload)
        .eq("id", customer_id)
        .eq("user_id", user_id)
        .execute()
    )

    if not result.data:
        return None
    return cast(Dict[str, Any], result.data[0])


async def delete_customer(
    supabase_client: Client,
    user_id: str,
    customer_id: str
) -> bool:
    result = (
        supabase_client.table(CUSTOMERS_TABLE)
        .delete()
        .eq("id", customer_id)
        .eq("user_id", user_id)
        .execute()
    )
    return bool(result.data)
