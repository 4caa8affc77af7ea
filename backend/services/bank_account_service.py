"""
Bank account service.

Stores the payout accounts shown on a user's invoices. Only the last four
digits of the account number are ever persisted.
"""

import logging
import re
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from backend.utils.constants import BANK_ACCOUNTS_TABLE

logger = logging.getLogger(__name__)


def last_four_digits(raw: Optional[str]) -> Optional[str]:
    digits = re.sub(r"\D", "", raw or "")
    return digits[-4:] or None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


async def get_user_bank_accounts(supabase_client: Client, user_id: str) -> List[Dict[str, Any]]:
    result = (
        supabase_client.table(BANK_ACCOUNTS_TABLE)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return cast(List[Dict[str, Any]], result.data or [])


async def get_bank_account_by_id(
    supabase_client: Client,
    user_id: str,
    account_id: str
) -> Optional[Dict[str, Any]]:
    result = (
        supabase_client.table(BANK_ACCOUNTS_TABLE)
        .select("*")
        .eq("id", account_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return cast(Dict[str, Any], result.data[0])


async def create_bank_account(
    supabase_client: Client,
    user_id: str,
    account_holder: str,
    ifsc: str,
    account_number_last4: Optional[str] = None,
    bank_name: Optional[str] = None,
    branch_name: Optional[str] = None,
    is_default: bool = False,
) -> Dict[str, Any]:
    """
    Create a bank account record.

    Raises:
        ValueError: If account holder or IFSC is missing
    """
    holder = _clean(account_holder)
    if not holder:
        raise ValueError("Account holder name is required")
    clean_ifsc = _clean(ifsc)
    if not clean_ifsc:
        raise ValueError("IFSC code is required")

    payload = {
        "user_id": user_id,
        "account_holder": holder,
        "account_number_last4": last_four_digits(account_number_last4),
        "ifsc": clean_ifsc,
        "bank_name": _clean(bank_name),
        "branch_name": _clean(branch_name),
        "is_default": is_default,
    }

    result = supabase_client.table(BANK_ACCOUNTS_TABLE).insert(payload).execute()
    if not result.data:
        raise Exception("Failed to create bank account: no data returned")

    logger.info(f"Bank account created for user {user_id}")
    return cast(Dict[str, Any], result.data[0])


async def update_bank_account(
    supabase_client: Client,
    user_id: str,
    account_id: str,
    **updates: Any
) -> Optional[Dict[str, Any]]:
    if "account_number_last4" in updates:
        updates["account_number_last4"] = last_four_digits(updates["account_number_last4"])
    for required, message in (("account_holder", "Account holder name is required"),
                              ("ifsc", "IFSC code is required")):
        if required in updates:
            updates[required] = _clean(updates[required])
            if not updates[required]:
                raise ValueError(message)

    result = (
        supabase_client.table(BANK_ACCOUNTS_TABLE)
        .update(updates)
        .eq("id", account_id)
        .eq("user_id", user_id)
        .execute()
    )
    if not result.data:
        return None
    return cast(Dict[str, Any], result.data[0])


async def delete_bank_account(supabase_client: Client, user_id: str, account_id: str) -> bool:
    result = (
        supabase_client.table(BANK_ACCOUNTS_TABLE)
        .delete()
        .eq("id", account_id)
        .eq("user_id", user_id)
        .execute()
    )
    return bool(result.data)
