"""
SabPaisa payment endpoints.

- POST /payments/create (bearer) - encrypt a payment request for an invoice
  the caller can see, returns a one-time redirect URL
- GET /payments/go/{sid} (public) - HTML page that auto-submits the
  encrypted form to SabPaisa; meant for a WebView
- POST /payments/callback (public) - gateway callback; status 0000 marks
  the invoice paid and an HTML result page is shown in the WebView
"""

import logging
from html import escape
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.responses import HTMLResponse

from backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from backend.db.client import get_supabase_client
from backend.schemas.payments import PaymentCreateRequest, PaymentCreateResponse
from backend.services.document_service import INVOICE, get_document
from backend.services.payment_service import (
    PaymentConfigError,
    callback_url,
    create_payment_init,
    handle_callback,
    take_session,
    update_invoice_status,
)
from backend.utils.errors import internal_error, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def _page(title: str, body: str, status_code: int = status.HTTP_200_OK) -> HTMLResponse:
    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><meta name="viewport" content="width=device-width,initial-scale=1">
<title>{escape(title)}</title>
<style>body{{font-family:system-ui;max-width:400px;margin:50px auto;padding:24px;text-align:center}}
.success{{color:#16a34a}}.fail{{color:#dc2626}}</style></head>
<body>
{body}
</body>
</html>"""
    return HTMLResponse(content=html, status_code=status_code)


@router.post(
    "/create",
    response_model=PaymentCreateResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    summary="Start an invoice payment",
)
async def create_payment(
    body: PaymentCreateRequest,
    request: Request,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> PaymentCreateResponse:
    supabase_client = get_supabase_client()

    try:
        invoice = await get_document(supabase_client, INVOICE, auth_user, body.invoice_id)
    except Exception as e:
        logger.warning(f"Invoice lookup for payment failed: {e}")
        invoice = None
    if not invoice:
        raise not_found("Invoice not found")

    try:
        init = create_payment_init(
            payer_name=body.payer_name,
            payer_email=body.payer_email,
            payer_mobile=body.payer_mobile,
            amount=body.amount,
            callback=callback_url(str(request.base_url)),
            invoice_id=body.invoice_id,
            client_txn_id=body.client_txn_id,
        )
    except PaymentConfigError as e:
        logger.error(f"Payment gateway not configured: {e}")
        raise internal_error("payment_unavailable", "Payment gateway is not configured")

    logger.info(f"Payment initiated by user {auth_user.user_id} for invoice {body.invoice_id}")

    return PaymentCreateResponse(
        redirect_url=init.redirect_url,
        payment_url=init.payment_url,
        enc_data=init.enc_data,
        client_code=init.client_code,
        client_txn_id=init.client_txn_id,
    )


@router.get("/go/{sid}", response_class=HTMLResponse, summary="Redirect to SabPaisa")
async def redirect_to_gateway(
    sid: Annotated[str, Path(description="Payment session id")]
) -> HTMLResponse:
    session = take_session(sid)
    if session is None:
        return _page(
            "Session expired",
            "<h1>Session expired. Please try again.</h1>",
            status.HTTP_404_NOT_FOUND,
        )

    body = f"""<p>Redirecting to payment gateway...</p>
<form id="sabpaisaForm" method="POST" action="{escape(session.payment_url)}">
  <input type="hidden" name="encData" value="{escape(session.enc_data)}" />
  <input type="hidden" name="clientCode" value="{escape(session.client_code)}" />
</form>
<script>document.getElementById('sabpaisaForm').submit();</script>"""
    return _page("Redirecting to Payment...", body)


async def _enc_response(request: Request) -> Optional[str]:
    content_type = request.headers.get("content-type", "")
    payload: Any
    if content_type.startswith("application/json"):
        payload = await request.json()
    else:
        payload = await request.form()
    value = payload.get("encResponse") if hasattr(payload, "get") else None
    return str(value) if value else None


@router.post("/callback", response_class=HTMLResponse, summary="SabPaisa callback")
async def payment_callback(request: Request) -> HTMLResponse:
    try:
        enc_response = await _enc_response(request)
    except Exception as e:
        logger.warning(f"Unreadable payment callback body: {e}")
        enc_response = None

    if not enc_response:
        return _page("Invalid callback", "<h1>Invalid callback</h1>", status.HTTP_400_BAD_REQUEST)

    try:
        result = handle_callback(enc_response)

        if result.invoice_id and result.is_success:
            await update_invoice_status(get_supabase_client(), result.invoice_id, "paid")

        logger.info(
            f"Payment callback txn={result.client_txn_id} status={result.status_code} "
            f"invoice={result.invoice_id}"
        )
    except Exception as e:
        logger.error(f"Payment callback failed: {e}", exc_info=True)
        return _page("Error", "<h1>Error processing payment</h1>", status.HTTP_500_INTERNAL_SERVER_ERROR)

    if result.is_success:
        heading = '<h1 class="success">&#10003; Payment Successful</h1>'
        message = result.message or "Your payment was completed."
    else:
        heading = '<h1 class="fail">&#10007; Payment Failed</h1>'
        message = result.message or "Please try again."

    return _page(
        "Payment Success" if result.is_success else "Payment Result",
        f"""{heading}
<p>{escape(message)}</p>
<p style="font-size:14px;color:#666">You can close this window and return to the app.</p>""",
    )
