"""
Database access layer for InvoiceBill Backend.

All database operations go through supabase-py against the PostgREST API.

Tables used by the backend:
- profiles, customers, items, bank_accounts
- invoices, invoice_items, quotations, quotation_items
- messages

DO NOT define table schemas, migrations, or RLS policies here.
"""

from .client import get_anon_client, get_supabase_client

__all__ = ["get_supabase_client", "get_anon_client"]
