"""
Document notification fan-out.

After an invoice or quotation is persisted, the sender and every matched
receiver are told about it through up to three independent channels:

- in-app message (messages table), one per user
- Expo push, one per user that has a push token, sent as one batch
- email to the customer's address, when it is a valid address

Every step is best-effort. A failure is logged at the call site and never
propagates: the document was already created and that is what the HTTP
response reports. There is no retry; delivery is at-most-once.
"""

import asyncio
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from supabase import Client

from backend.services.mail_service import send_document_notification_email
from backend.services.message_service import insert_message
from backend.services.profile_service import get_display_name, get_push_tokens
from backend.services.push_service import PushMessage, send_push_notifications
from backend.services.recipient_service import find_receiver_ids
from backend.utils.constants import CURRENCY_SYMBOL, DEFAULT_CUSTOMER_NAME, DEFAULT_SENDER_NAME
from backend.utils.identity import Identity, email_for_storage
from backend.utils.logging import get_logger

if TYPE_CHECKING:
    from backend.services.document_service import DocumentKind

logger = get_logger(__name__)


@dataclass
class NotificationReport:
    """What the fan-out managed to do; used for logging and tests."""
    receiver_ids: List[str] = field(default_factory=list)
    messages_inserted: int = 0
    pushes_attempted: int = 0
    email_sent: bool = False


def line_items_total(items: Optional[List[Dict[str, Any]]]) -> float:
    """Sum of qty x rate; malformed values count as zero."""
    total = 0.0
    for item in items or []:
        try:
            qty = float(item.get("qty") or 0)
            rate = float(item.get("rate") or 0)
        except (TypeError, ValueError):
            continue
        total += qty * rate
    return total


def format_amount(total: float) -> Optional[str]:
    """
    Format a positive amount with Indian digit grouping, e.g. 150000 -> "₹1,50,000".

    Returns None for zero or negative totals so notification text omits it.
    """
    if total <= 0:
        return None

    value = Decimal(str(total)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    whole, _, fraction = f"{value:.2f}".partition(".")

    head, tail = whole[:-3], whole[-3:]
    groups: List[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ",".join(groups + [tail])

    fraction = fraction.rstrip("0")
    return f"{CURRENCY_SYMBOL}{grouped}{'.' + fraction if fraction else ''}"


def _customer(document: Dict[str, Any]) -> Dict[str, Any]:
    customer = document.get("customers")
    return customer if isinstance(customer, dict) else {}


async def notify_document_created(
    supabase_client: Client,
    kind: "DocumentKind",
    document: Dict[str, Any],
    sender_id: str,
) -> NotificationReport:
    """
    Fan out notifications for a newly created document.

    Args:
        supabase_client: Supabase client (service role)
        kind: Invoice or quotation descriptor
        document: The re-fetched document with its customer and line items
        sender_id: Owner of the document

    Returns:
        NotificationReport describing what was attempted
    """
    report = NotificationReport()
    document_id = str(document.get("id"))
    number = str(document.get(kind.number_field) or "")
    label = kind.label
    noun = label.lower()

    customer = _customer(document)
    customer_name = customer.get("name") or document.get("client_name") or DEFAULT_CUSTOMER_NAME
    amount = format_amount(kind.total(document))

    try:
        sender_name = await get_display_name(supabase_client, sender_id, DEFAULT_SENDER_NAME)
    except Exception as e:
        logger.warning(f"Could not load sender name for user {sender_id}: {e}")
        sender_name = DEFAULT_SENDER_NAME

    # 1. Sender's own feed
    try:
        await insert_message(
            supabase_client,
            user_id=sender_id,
            title=f"{label} {number} sent to {customer_name}",
            description=f"You sent {noun} {number} to {customer_name}.",
        )
        report.messages_inserted += 1
    except Exception as e:
        logger.warning(f"Sender message insert failed for {noun} {document_id}: {e}")

    # 2. Registered users the document was addressed to
    recipient = Identity.from_raw(
        phone=document.get("recipient_phone"),
        email=document.get("recipient_email"),
    )
    try:
        report.receiver_ids = await find_receiver_ids(
            supabase_client, recipient, exclude_user_id=sender_id
        )
    except Exception as e:
        logger.warning(f"Recipient lookup failed for {noun} {document_id}: {e}")

    receiver_description = f"{sender_name} sent you {noun} {number}"
    if amount:
        receiver_description += f" for {amount}"
    receiver_description += "."

    for receiver_id in report.receiver_ids:
        try:
            await insert_message(
                supabase_client,
                user_id=receiver_id,
                title=f"New {noun} {number} from {sender_name}",
                description=receiver_description,
            )
            report.messages_inserted += 1
        except Exception as e:
            logger.warning(f"Receiver message insert failed for user {receiver_id}: {e}")

    # 3. Push, one batch for everyone with a token
    try:
        tokens = await get_push_tokens(supabase_client, [sender_id, *report.receiver_ids])
        data = {"type": kind.name, "id": document_id}
        pushes: List[PushMessage] = []

        if sender_id in tokens:
            pushes.append(PushMessage(
                token=tokens[sender_id],
                title=f"{label} {number} sent",
                body=f"You sent {noun} {number} to {customer_name}.",
                data=data,
            ))
        for receiver_id in report.receiver_ids:
            if receiver_id in tokens:
                pushes.append(PushMessage(
                    token=tokens[receiver_id],
                    title=f"New {noun} from {sender_name}",
                    body=receiver_description,
                    data=data,
                ))

        report.pushes_attempted = len(pushes)
        if pushes:
            await send_push_notifications(pushes)
    except Exception as e:
        logger.warning(f"Push fan-out failed for {noun} {document_id}: {e}")

    # 4. Email to the customer
    customer_email = email_for_storage(customer.get("email"))
    if customer_email:
        try:
            report.email_sent = await asyncio.to_thread(
                send_document_notification_email,
                to_email=customer_email,
                sender_name=sender_name,
                document_label=label,
                document_number=number,
                amount=amount,
            )
        except Exception as e:
            logger.warning(f"Notification email failed for {noun} {document_id}: {e}")

    logger.info(
        f"Fan-out for {noun} {document_id}: receivers={len(report.receiver_ids)}, "
        f"messages={report.messages_inserted}, pushes={report.pushes_attempted}, "
        f"email_sent={report.email_sent}"
    )
    return report
