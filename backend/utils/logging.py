"""
Logging utilities for InvoiceBill Backend.

Provides standardized logger configuration following security and privacy rules.

CRITICAL SECURITY RULES:
- NEVER log Supabase Auth tokens, refresh tokens, API keys or SMTP passwords
- NEVER log OTP codes or password-reset tokens outside development
- NEVER log SabPaisa plaintext payloads (they contain gateway credentials)
- NEVER log full email addresses; use mask_email()

Acceptable logging:
- High-level events (e.g., "Invoice created", "Push batch sent")
- Identifiers (user_id, document id, customer id)
- Counts (receivers matched, messages inserted, tokens dropped)
- Sanitized error messages
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger for the specified module.

    Args:
        name: Module name (typically __name__)
        level: Optional logging level; inherits the root level when omitted

    Usage:
        >>> from backend.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Push batch sent")
    """
    logger = logging.getLogger(name)

    if level is not None:
        logger.setLevel(level)

    # main.py configures the root logger; scripts and tests may not
    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    return logger


def mask_email(email: Optional[str]) -> str:
    """
    >>> mask_email("rahul.sharma@example.com")
    'ra***@example.com'
    """
    if not email or "@" not in email:
        return "<none>"
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}"
