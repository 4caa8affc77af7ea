"""
Supabase client factory.

The backend talks to Supabase with the service key. Row Level Security is
therefore NOT the ownership boundary here: every query issued on behalf of a
user MUST filter on user_id explicitly (or on the recipient identity for
received documents).

Recipient matching and notification fan-out are inherently cross-user
(a sender inserts messages for a receiver, a receiver reads documents owned
by a sender), which is why a per-user RLS client cannot be used.
"""

import logging
from functools import lru_cache

from backend.config import settings
from supabase import Client, create_client

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """
    Return the shared service-role Supabase client.

    The client is created lazily on first use and reused for the lifetime of
    the process.

    Returns:
        A Supabase client with service_role privileges.

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_SERVICE_KEY is not configured.
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")

    client: Client = create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_SERVICE_KEY,
    )

    logger.info("Created service-role Supabase client")

    return client


def get_anon_client() -> Client:
    """
    Create a Supabase client with the anon key for end-user auth flows.

    A fresh client is returned per call because sign-in stores the session on
    the client instance.
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_ANON_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

    return create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_ANON_KEY,
    )
