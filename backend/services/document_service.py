"""
Invoice and quotation service.

Both document types share one pipeline, parameterised by a DocumentKind.

Creation:
1. Validate the document number
2. Resolve the recipient identity (customer record, overridden by explicit
   recipient_phone / recipient_email). No identity -> rejected, nothing written
3. Insert the document (type "sent", recipient fields denormalized)
4. Insert line items
5. Re-fetch with customer and line items
6. Notification fan-out (best-effort, never fails the request)

Reading:
- list: documents the caller owns ("sent") merged with documents owned by
  others but addressed to the caller's identity ("received")
- get: owner sees the document; anyone else must match its recipient
  identity, otherwise the document does not exist for them

type="received" only ever appears in responses; it is never persisted.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple, cast

from supabase import Client

from backend.auth.dependencies import AuthenticatedUser
from backend.services.customer_service import get_customer_by_id
from backend.services.notification_service import line_items_total, notify_document_created
from backend.services.profile_service import resolve_caller_identity
from backend.services.recipient_service import escape_like, identity_matches
from backend.utils.constants import (
    CUSTOMER_EMBED,
    DEFAULT_LINE_ITEM_NAME,
    DOCUMENT_TYPE_RECEIVED,
    DOCUMENT_TYPE_SENT,
)
from backend.utils.identity import Identity, email_for_storage, phone_for_storage

logger = logging.getLogger(__name__)


def _invoice_row(payload: Dict[str, Any]) -> Dict[str, Any]:
    include_gst = payload.get("include_gst")
    return {
        "due_date": payload.get("due_date") or None,
        "status": payload.get("status") or "pending",
        "notes": payload.get("notes") or None,
        "include_gst": True if include_gst is None else include_gst,
        "payment_type": payload.get("payment_type") or None,
    }


def _quotation_row(payload: Dict[str, Any]) -> Dict[str, Any]:
    try:
        amount = float(payload.get("amount") or 0)
    except (TypeError, ValueError):
        amount = 0.0
    return {
        "client_name": payload.get("client_name") or None,
        "amount": amount,
        "date": payload.get("date") or date.today().isoformat(),
        "version": "v1",
        "valid_until": payload.get("valid_until") or None,
        "view_status": None,
        "status": payload.get("status") or "draft",
    }


@dataclass(frozen=True)
class DocumentKind:
    """Table layout and defaults of one document type."""
    name: str
    label: str
    table: str
    items_table: str
    items_fk: str
    number_field: str
    number_label: str
    build_row: Callable[[Dict[str, Any]], Dict[str, Any]]
    # Recipient identity, customer and type are fixed at creation
    editable_fields: Tuple[str, ...] = ()
    amount_field: Optional[str] = None

    @property
    def list_select(self) -> str:
        return f"*, {CUSTOMER_EMBED}"

    @property
    def detail_select(self) -> str:
        return f"*, {CUSTOMER_EMBED}, {self.items_table} (*)"

    def total(self, document: Dict[str, Any]) -> float:
        total = line_items_total(document.get(self.items_table))
        if not total and self.amount_field:
            try:
                total = float(document.get(self.amount_field) or 0)
            except (TypeError, ValueError):
                total = 0.0
        return total


INVOICE = DocumentKind(
    name="invoice",
    label="Invoice",
    table="invoices",
    items_table="invoice_items",
    items_fk="invoice_id",
    number_field="number",
    number_label="Invoice number",
    build_row=_invoice_row,
    editable_fields=("number", "due_date", "status", "notes", "include_gst", "payment_type"),
)

QUOTATION = DocumentKind(
    name="quotation",
    label="Quotation",
    table="quotations",
    items_table="quotation_items",
    items_fk="quotation_id",
    number_field="quo_number",
    number_label="Quote number",
    build_row=_quotation_row,
    amount_field="amount",
)


# --- Creation ---

def _override(raw: Optional[str], normalizer: Callable[[Any], Optional[str]], field: str) -> Optional[str]:
    if raw is None or not str(raw).strip():
        return None
    value = normalizer(raw)
    if value is None:
        raise ValueError(f"Invalid {field}: {raw!r}")
    return value


async def resolve_recipient(
    supabase_client: Client,
    kind: DocumentKind,
    user_id: str,
    customer_id: Optional[str] = None,
    recipient_phone: Optional[str] = None,
    recipient_email: Optional[str] = None,
) -> Identity:
    """
    Work out who a new document is addressed to.

    The customer's stored phone/email are the default; explicit
    recipient_phone / recipient_email replace them field by field.

    Raises:
        ValueError: Unknown customer, malformed override, or no phone and no
        email at all (the recipient could never discover the document)
    """
    phone: Optional[str] = None
    email: Optional[str] = None

    if customer_id:
        customer = await get_customer_by_id(supabase_client, user_id, customer_id)
        if customer is None:
            raise ValueError("Customer not found")
        phone = phone_for_storage(customer.get("phone"))
        email = email_for_storage(customer.get("email"))

    phone = _override(recipient_phone, phone_for_storage, "recipient_phone") or phone
    email = _override(recipient_email, email_for_storage, "recipient_email") or email

    identity = Identity(phone=phone, email=email)
    if identity.is_empty:
        raise ValueError(
            f"Customer must have a phone number or email so the recipient can see "
            f"this {kind.name} when they sign up."
        )
    return identity


def build_line_items(
    kind: DocumentKind,
    document_id: str,
    items: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    rows = []
    for index, item in enumerate(items):
        qty = item.get("qty")
        rate = item.get("rate")
        sort_order = item.get("sort_order")
        rows.append({
            kind.items_fk: document_id,
            "name": (item.get("name") or "").strip() or DEFAULT_LINE_ITEM_NAME,
            "qty": 1 if qty is None else qty,
            "rate": 0 if rate is None else rate,
            "sort_order": index if sort_order is None else sort_order,
        })
    return rows


async def fetch_document(
    supabase_client: Client,
    kind: DocumentKind,
    document_id: str
) -> Optional[Dict[str, Any]]:
    """Fetch a document with its customer and line items, regardless of owner."""
    result = (
        supabase_client.table(kind.table)
        .select(kind.detail_select)
        .eq("id", document_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return cast(Dict[str, Any], result.data[0])


async def create_document(
    supabase_client: Client,
    kind: DocumentKind,
    user_id: str,
    payload: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Create an invoice or quotation and notify everyone involved.

    Args:
        supabase_client: Supabase client
        kind: INVOICE or QUOTATION
        user_id: The sender (authenticated caller)
        payload: Request fields; line items under "items"

    Returns:
        The full created document, sender perspective

    Raises:
        ValueError: Validation failure (nothing is written)
        postgrest.exceptions.APIError: Document or line item write failed
    """
    number = str(payload.get(kind.number_field) or "").strip()
    if not number:
        raise ValueError(f"{kind.number_label} is required")

    customer_id = payload.get("customer_id") or None
    recipient = await resolve_recipient(
        supabase_client,
        kind,
        user_id,
        customer_id=customer_id,
        recipient_phone=payload.get("recipient_phone"),
        recipient_email=payload.get("recipient_email"),
    )

    row = {
        "user_id": user_id,
        "customer_id": customer_id,
        "recipient_phone": recipient.phone,
        "recipient_email": recipient.email,
        kind.number_field: number,
        "type": DOCUMENT_TYPE_SENT,
        **kind.build_row(payload),
    }

    logger.info(f"Creating {kind.name} for user {user_id} (customer={customer_id})")

    result = supabase_client.table(kind.table).insert(row).execute()
    if not result.data:
        raise Exception(f"Failed to create {kind.name}: no data returned")

    created = cast(Dict[str, Any], result.data[0])
    document_id = str(created["id"])

    items = build_line_items(kind, document_id, payload.get("items") or [])
    if items:
        supabase_client.table(kind.items_table).insert(items).execute()

    document = await fetch_document(supabase_client, kind, document_id) or created

    logger.info(
        f"{kind.label} {document_id} created for user {user_id} "
        f"with {len(items)} line item(s)"
    )

    try:
        await notify_document_created(supabase_client, kind, document, user_id)
    except Exception as e:
        logger.error(f"Notification fan-out crashed for {kind.name} {document_id}: {e}", exc_info=True)

    return document


# --- Reading ---

def _sort_key(document: Dict[str, Any]) -> str:
    return str(document.get("created_at") or document.get("date") or "")


async def fetch_received_documents(
    supabase_client: Client,
    kind: DocumentKind,
    user_id: str,
    identity: Identity,
) -> List[Dict[str, Any]]:
    """
    Documents owned by others whose recipient identity matches the caller.

    Each match rule is a separate query; results are merged by document id.
    A failing query is logged and contributes nothing.
    """
    received: Dict[str, Dict[str, Any]] = {}

    def _collect(op: str, column: str, value: str) -> None:
        try:
            query = (
                supabase_client.table(kind.table)
                .select(kind.list_select)
                .neq("user_id", user_id)
            )
            rows = getattr(query, op)(column, value).order("created_at", desc=True).execute().data
        except Exception as e:
            logger.warning(f"Received {kind.name} lookup on {column} failed: {e}")
            return
        for doc in cast(List[Dict[str, Any]], rows or []):
            received[str(doc.get("id"))] = {**doc, "type": DOCUMENT_TYPE_RECEIVED}

    if identity.phone:
        _collect("eq", "recipient_phone", identity.phone)
        _collect("like", "recipient_phone", f"%{identity.phone}")
    if identity.email:
        _collect("ilike", "recipient_email", escape_like(identity.email))

    return list(received.values())


async def list_documents(
    supabase_client: Client,
    kind: DocumentKind,
    auth_user: AuthenticatedUser,
) -> List[Dict[str, Any]]:
    """
    Sent and received documents for the caller, newest first.
    """
    result = (
        supabase_client.table(kind.table)
        .select(kind.list_select)
        .eq("user_id", auth_user.user_id)
        .order("created_at", desc=True)
        .execute()
    )
    sent = cast(List[Dict[str, Any]], result.data or [])

    identity = await resolve_caller_identity(supabase_client, auth_user)
    received = await fetch_received_documents(supabase_client, kind, auth_user.user_id, identity)

    documents = sorted([*sent, *received], key=_sort_key, reverse=True)
    logger.info(
        f"Listing {kind.name}s for user {auth_user.user_id}: "
        f"{len(sent)} sent, {len(received)} received"
    )
    return documents


async def get_document(
    supabase_client: Client,
    kind: DocumentKind,
    auth_user: AuthenticatedUser,
    document_id: str,
) -> Optional[Dict[str, Any]]:
    """
    Fetch a document visible to the caller.

    Returns:
        The document (tagged "received" for non-owners), or None when it does
        not exist or is neither owned by nor addressed to the caller
    """
    document = await fetch_document(supabase_client, kind, document_id)
    if document is None:
        return None

    if document.get("user_id") == auth_user.user_id:
        return document

    identity = await resolve_caller_identity(supabase_client, auth_user)
    if not identity_matches(identity, document.get("recipient_phone"), document.get("recipient_email")):
        logger.warning(f"{kind.label} {document_id} is not addressed to user {auth_user.user_id}")
        return None

    return {**document, "type": DOCUMENT_TYPE_RECEIVED}


# --- Owner-only mutations ---

async def _owns(
    supabase_client: Client,
    kind: DocumentKind,
    user_id: str,
    document_id: str
) -> bool:
    result = (
        supabase_client.table(kind.table)
        .select("id")
        .eq("id", document_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    return bool(result.data)


async def update_document(
    supabase_client: Client,
    kind: DocumentKind,
    user_id: str,
    document_id: str,
    **updates: Any
) -> Optional[Dict[str, Any]]:
    """
    Patch editable fields of an owned document.

    Returns:
        The updated row, or None if not found / not owned

    Raises:
        ValueError: If the number is blanked
    """
    fields = {k: v for k, v in updates.items() if k in kind.editable_fields}

    if kind.number_field in fields:
        fields[kind.number_field] = str(fields[kind.number_field] or "").strip()
        if not fields[kind.number_field]:
            raise ValueError(f"{kind.number_label} is required")

    if not fields:
        if not await _owns(supabase_client, kind, user_id, document_id):
            return None
        return await fetch_document(supabase_client, kind, document_id)

    result = (
        supabase_client.table(kind.table)
        .update(fields)
        .eq("id", document_id)
        .eq("user_id", user_id)
        .execute()
    )
    if not result.data:
        return None
    return cast(Dict[str, Any], result.data[0])


async def delete_document(
    supabase_client: Client,
    kind: DocumentKind,
    user_id: str,
    document_id: str
) -> bool:
    """
    Delete an owned document and its line items.

    Returns:
        False if the document does not exist or is not owned by the user
    """
    if not await _owns(supabase_client, kind, user_id, document_id):
        return False

    supabase_client.table(kind.items_table).delete().eq(kind.items_fk, document_id).execute()
    supabase_client.table(kind.table).delete().eq("id", document_id).eq("user_id", user_id).execute()

    logger.info(f"{kind.label} {document_id} deleted by user {user_id}")
    return True


async def add_line_item(
    supabase_client: Client,
    kind: DocumentKind,
    user_id: str,
    document_id: str,
    item: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    """
    Append a line item to an owned document.

    Returns:
        The created line item, or None if the document is not the user's
    """
    if not await _owns(supabase_client, kind, user_id, document_id):
        return None

    row = build_line_items(kind, document_id, [item])[0]
    if item.get("sort_order") is None:
        row["sort_order"] = 0

    result = supabase_client.table(kind.items_table).insert(row).execute()
    if not result.data:
        raise Exception("Failed to add line item: no data returned")
    return cast(Dict[str, Any], result.data[0])


async def remove_line_item(
    supabase_client: Client,
    kind: DocumentKind,
    user_id: str,
    document_id: str,
    item_id: str,
) -> bool:
    """
    Remove a line item from an owned document.

    Returns:
        False if the document is not the user's
    """
    if not await _owns(supabase_client, kind, user_id, document_id):
        return False

    (
        supabase_client.table(kind.items_table)
        .delete()
        .eq("id", item_id)
        .eq(kind.items_fk, document_id)
        .execute()
    )
    return True
