"""
Service layer for the InvoiceBill backend.

Contains the business logic between routes (HTTP layer) and Supabase:
- CRUD over customers, items, bank accounts, profiles and messages
- the invoice/quotation creation pipeline and received-documents view
- notification fan-out (in-app messages, Expo push, email)
- auth flows, email OTP and SabPaisa payments

Services are plain async functions that take a supabase Client; ownership is
enforced by explicit user_id filters because the client uses the service key.
"""

from .bank_account_service import (
    create_bank_account,
    delete_bank_account,
    get_bank_account_by_id,
    get_user_bank_accounts,
    update_bank_account,
)
from .customer_service import (
    create_customer,
    delete_customer,
    get_customer_by_id,
    get_user_customers,
    update_customer,
)
from .document_service import (
    INVOICE,
    QUOTATION,
    DocumentKind,
    create_document,
    delete_document,
    get_document,
    list_documents,
    update_document,
)
from .item_service import create_item, delete_item, get_item_by_id, get_user_items, update_item
from .message_service import insert_message, list_messages, mark_message_read
from .notification_service import NotificationReport, notify_document_created
from .profile_service import (
    get_profile_view,
    get_user_profile,
    resolve_caller_identity,
    update_user_profile,
)
from .recipient_service import find_receiver_ids
from .storage import upload_avatar

__all__ = [
    "get_user_bank_accounts",
    "get_bank_account_by_id",
    "create_bank_account",
    "update_bank_account",
    "delete_bank_account",
    "get_user_customers",
    "get_customer_by_id",
    "create_customer",
    "update_customer",
    "delete_customer",
    "INVOICE",
    "QUOTATION",
    "DocumentKind",
    "create_document",
    "list_documents",
    "get_document",
    "update_document",
    "delete_document",
    "get_user_items",
    "get_item_by_id",
    "create_item",
    "update_item",
    "delete_item",
    "insert_message",
    "list_messages",
    "mark_message_read",
    "NotificationReport",
    "notify_document_created",
    "get_user_profile",
    "get_profile_view",
    "resolve_caller_identity",
    "update_user_profile",
    "find_receiver_ids",
    "upload_avatar",
]
