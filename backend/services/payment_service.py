"""
SabPaisa payment service.

Flow:
1. POST /payments/create builds and encrypts the gateway request and parks it
   in a short-lived session, returning /payments/go/{sid}.
2. The app opens that URL in a WebView; the page auto-submits the encrypted
   form to SabPaisa. A session can be used once.
3. SabPaisa posts encResponse to /payments/callback; status 0000 marks the
   invoice paid (invoice id travels in udf1).
"""

import logging
import re
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from supabase import Client

from backend.config import settings
from backend.services.document_service import INVOICE
from backend.utils.sabpaisa import decrypt, encrypt, parse_response
from backend.utils.ttl_store import TTLStore

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = 5 * 60
SUCCESS_STATUS = "0000"
CHANNEL_MOBILE = "M"


class PaymentConfigError(RuntimeError):
    """SabPaisa credentials are not configured."""


@dataclass(frozen=True)
class PaymentSession:
    payment_url: str
    enc_data: str
    client_code: str


@dataclass(frozen=True)
class PaymentInit:
    sid: str
    redirect_url: str
    payment_url: str
    enc_data: str
    client_code: str
    client_txn_id: str


@dataclass
class CallbackResult:
    status_code: str
    client_txn_id: str
    sabpaisa_txn_id: str
    amount: str
    paid_amount: str
    message: str
    invoice_id: Optional[str]
    raw: Dict[str, str]

    @property
    def is_success(self) -> bool:
        return self.status_code == SUCCESS_STATUS


_sessions: TTLStore[PaymentSession] = TTLStore(SESSION_TTL_SECONDS)


def _required_credentials() -> Dict[str, str]:
    credentials = {
        "SABPAISA_CLIENT_CODE": settings.SABPAISA_CLIENT_CODE,
        "SABPAISA_TRANS_USERNAME": settings.SABPAISA_TRANS_USERNAME,
        "SABPAISA_TRANS_PASSWORD": settings.SABPAISA_TRANS_PASSWORD,
        "SABPAISA_AUTH_KEY": settings.SABPAISA_AUTH_KEY,
        "SABPAISA_AUTH_IV": settings.SABPAISA_AUTH_IV,
        "SABPAISA_BASE_URL": settings.SABPAISA_BASE_URL,
    }
    missing = [key for key, value in credentials.items() if not value]
    if missing:
        raise PaymentConfigError(f"SabPaisa credentials missing: {', '.join(missing)}")
    return credentials


def new_client_txn_id() -> str:
    return f"INV{int(time.time() * 1000)}{secrets.token_hex(4)}"[:18]


def callback_url(request_base_url: str) -> str:
    """Configured callback URL, or this server's own /payments/callback."""
    if settings.SABPAISA_CALLBACK_URL.strip():
        return settings.SABPAISA_CALLBACK_URL.strip()
    return f"{request_base_url.rstrip('/')}/payments/callback"


def build_request_string(
    *,
    payer_name: str,
    payer_email: str,
    payer_mobile: str,
    amount: float,
    client_txn_id: str,
    callback: str,
    invoice_id: Optional[str] = None,
    trans_date: Optional[datetime] = None,
) -> str:
    credentials = _required_credentials()
    when = trans_date or datetime.now(timezone.utc)

    fields = [
        ("payerName", payer_name.strip()),
        ("payerEmail", payer_email.strip()),
        ("payerMobile", re.sub(r"\D", "", payer_mobile)[-10:]),
        ("clientTxnId", client_txn_id.strip()),
        ("amount", str(int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)))),
        ("clientCode", credentials["SABPAISA_CLIENT_CODE"].strip()),
        ("transUserName", credentials["SABPAISA_TRANS_USERNAME"].strip()),
        ("transUserPassword", credentials["SABPAISA_TRANS_PASSWORD"].strip()),
        ("callbackUrl", callback.strip()),
        ("channelId", CHANNEL_MOBILE),
        ("mcc", settings.SABPAISA_MCC),
        ("transDate", when.strftime("%Y-%m-%d %H:%M:%S")),
    ]
    if invoice_id:
        fields.append(("udf1", invoice_id))

    return "&".join(f"{key}={value}" for key, value in fields)


def create_payment_init(
    *,
    payer_name: str,
    payer_email: str,
    payer_mobile: str,
    amount: float,
    callback: str,
    invoice_id: Optional[str] = None,
    client_txn_id: Optional[str] = None,
) -> PaymentInit:
    """
    Encrypt a payment request and open a redirect session for it.

    Raises:
        PaymentConfigError: If SabPaisa is not configured
    """
    txn_id = client_txn_id or new_client_txn_id()
    plain = build_request_string(
        payer_name=payer_name,
        payer_email=payer_email,
        payer_mobile=payer_mobile,
        amount=amount,
        client_txn_id=txn_id,
        callback=callback,
        invoice_id=invoice_id,
    )
    enc_data = encrypt(plain, settings.SABPAISA_AUTH_KEY, settings.SABPAISA_AUTH_IV)

    base = settings.SABPAISA_BASE_URL
    payment_url = base if base.endswith("/") else f"{base}/"
    client_code = settings.SABPAISA_CLIENT_CODE.strip()

    _sessions.purge()
    sid = secrets.token_urlsafe(8)
    _sessions.set(sid, PaymentSession(payment_url, enc_data, client_code))

    logger.info(f"Payment session {sid} created for txn {txn_id}")

    return PaymentInit(
        sid=sid,
        redirect_url=f"/payments/go/{sid}",
        payment_url=payment_url,
        enc_data=enc_data,
        client_code=client_code,
        client_txn_id=txn_id,
    )


def take_session(sid: str) -> Optional[PaymentSession]:
    """Single use: the session is removed as it is read."""
    return _sessions.pop(sid)


def handle_callback(enc_response: str) -> CallbackResult:
    """
    Decrypt and parse a gateway callback.

    Raises:
        PaymentConfigError: If AuthKey/AuthIV are not configured
        ValueError: If the payload cannot be decrypted
    """
    if not settings.SABPAISA_AUTH_KEY or not settings.SABPAISA_AUTH_IV:
        raise PaymentConfigError("SabPaisa AuthKey/AuthIV not configured")

    params = parse_response(
        decrypt(enc_response, settings.SABPAISA_AUTH_KEY, settings.SABPAISA_AUTH_IV)
    )

    return CallbackResult(
        status_code=params.get("statusCode", ""),
        client_txn_id=params.get("clientTxnId", ""),
        sabpaisa_txn_id=params.get("sabpaisaTxnId", ""),
        amount=params.get("amount", ""),
        paid_amount=params.get("paidAmount", ""),
        message=params.get("sabpaisaMessage", ""),
        invoice_id=params.get("udf1") or None,
        raw=params,
    )


async def update_invoice_status(supabase_client: Client, invoice_id: str, status: str) -> bool:
    result = (
        supabase_client.table(INVOICE.table)
        .update({"status": status})
        .eq("id", invoice_id)
        .execute()
    )
    updated = bool(result.data)
    if not updated:
        logger.warning(f"Payment callback referenced unknown invoice {invoice_id}")
    return updated
