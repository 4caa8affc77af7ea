"""
Recipient matching.

Maps a canonical contact identity (phone, email) to the registered users it
belongs to. Used at document creation to find who to notify, and at read time
to decide whether a document not owned by the caller was addressed to them.

Match rules (unioned, deduplicated by user id):
- phone: exact match on the canonical 10-digit form
- phone: suffix match (LIKE '%<phone>'), only when the exact query found no
  profile. Covers rows written before phone storage was normalized.
- email: case-insensitive match (ILIKE)

A recipient that has not signed up yet simply matches nobody; the document
keeps recipient_phone/recipient_email so that a later signup "receives" it.
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from backend.utils.constants import PROFILES_TABLE
from backend.utils.identity import Identity, normalize_email, normalize_phone

logger = logging.getLogger(__name__)


def escape_like(value: str) -> str:
    # Canonical phones are digits only; escaping keeps ILIKE literal for emails
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _ids(rows: Any) -> List[str]:
    return [str(row["id"]) for row in cast(List[Dict[str, Any]], rows or []) if row.get("id")]


async def find_receiver_ids(
    supabase_client: Client,
    identity: Identity,
    exclude_user_id: Optional[str] = None,
) -> List[str]:
    """
    Find the users whose stored profile matches the given identity.

    Args:
        supabase_client: Supabase client (service role: this is a cross-user read)
        identity: Canonical recipient identity
        exclude_user_id: User to leave out (the sender)

    Returns:
        Matching user ids in first-seen order, without duplicates. Empty when
        the identity is empty.
    """
    if identity.is_empty:
        return []

    found: Dict[str, None] = {}

    def _query(column: str, op: str, value: str) -> List[str]:
        query = supabase_client.table(PROFILES_TABLE).select("id")
        query = getattr(query, op)(column, value)
        if exclude_user_id:
            query = query.neq("id", exclude_user_id)
        return _ids(query.execute().data)

    if identity.phone:
        by_phone = _query("phone", "eq", identity.phone)
        if not by_phone:
            by_phone = _query("phone", "like", f"%{identity.phone}")
        found.update(dict.fromkeys(by_phone))

    if identity.email:
        found.update(dict.fromkeys(_query("email", "ilike", escape_like(identity.email))))

    receiver_ids = list(found)
    logger.info(f"Recipient lookup matched {len(receiver_ids)} user(s)")
    return receiver_ids


def identity_matches(
    identity: Identity,
    recipient_phone: Optional[str],
    recipient_email: Optional[str],
) -> bool:
    """
    In-process version of the match rules, for a single stored document.

    Comparing the last 10 digits of both sides covers both the exact and the
    suffix rule.
    """
    my_phone = normalize_phone(identity.phone)
    my_email = normalize_email(identity.email)
    doc_phone = normalize_phone(recipient_phone)
    doc_email = normalize_email(recipient_email)

    if my_phone and doc_phone and my_phone == doc_phone:
        return True
    if my_email and doc_email and my_email == doc_email:
        return True
    return False
