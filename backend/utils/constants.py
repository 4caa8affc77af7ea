"""
Shared table names and presentation constants.

Message icon values are Ionicons names rendered by the mobile app.
"""

# Tables
PROFILES_TABLE = "profiles"
CUSTOMERS_TABLE = "customers"
ITEMS_TABLE = "items"
BANK_ACCOUNTS_TABLE = "bank_accounts"
MESSAGES_TABLE = "messages"

# Nested select used wherever a document is returned with its customer
CUSTOMER_EMBED = "customers (id, name, phone, email)"

# In-app message decoration
MESSAGE_ICON_DOCUMENT = "document-text"
MESSAGE_ICON_COLOR = "#7C3AED"

# Document perspective tags
DOCUMENT_TYPE_SENT = "sent"
DOCUMENT_TYPE_RECEIVED = "received"

# Fallback display names used in notification text
DEFAULT_CUSTOMER_NAME = "Customer"
DEFAULT_SENDER_NAME = "A user"
DEFAULT_LINE_ITEM_NAME = "Item"
DEFAULT_CUSTOMER_COLOR = "blue"

CURRENCY_SYMBOL = "₹"
