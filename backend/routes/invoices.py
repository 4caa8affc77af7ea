"""
Invoice API endpoints.

Provides endpoints for:
- GET /invoices - Sent and received invoices
- POST /invoices - Create invoice (+ notification fan-out)
- GET /invoices/{invoice_id} - Invoice visible to the caller
- PATCH /invoices/{invoice_id} - Update editable fields (owner only)
- DELETE /invoices/{invoice_id} - Delete invoice and its items (owner only)
- POST /invoices/{invoice_id}/items - Add a line item (owner only)
- DELETE /invoices/{invoice_id}/items/{item_id} - Remove a line item (owner only)

All endpoints require valid Bearer token authentication. An invoice that is
neither owned by nor addressed to the caller is reported as not found.
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Path, status
from postgrest.exceptions import APIError

from backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from backend.db.client import get_supabase_client
from backend.schemas.documents import (
    DocumentDeleteResponse,
    LineItemCreateResponse,
    LineItemInput,
    LineItemResponse,
)
from backend.schemas.invoices import (
    InvoiceCreateRequest,
    InvoiceCreateResponse,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceUpdateRequest,
    InvoiceUpdateResponse,
)
from backend.services.document_service import (
    INVOICE,
    add_line_item,
    create_document,
    delete_document,
    fetch_document,
    get_document,
    list_documents,
    remove_line_item,
    update_document,
)
from backend.utils.errors import database_error, internal_error, invalid_request, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _to_response(document: Dict[str, Any]) -> InvoiceResponse:
    items = sorted(
        document.get(INVOICE.items_table) or [],
        key=lambda i: i.get("sort_order") or 0
    )
    return InvoiceResponse.model_validate({
        **document,
        INVOICE.items_table: items,
        "total": INVOICE.total(document),
    })


@router.get(
    "",
    response_model=InvoiceListResponse,
    status_code=status.HTTP_200_OK,
    summary="List invoices",
    description="""
    Invoices the caller sent, merged with invoices other users addressed to
    the caller's phone or email (type "received"), newest first.
    """
)
async def list_invoices(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> InvoiceListResponse:
    supabase_client = get_supabase_client()

    try:
        documents = await list_documents(supabase_client, INVOICE, auth_user)
        invoices = [_to_response(doc) for doc in documents]
        return InvoiceListResponse(invoices=invoices, count=len(invoices))

    except APIError as e:
        logger.error(f"Database error listing invoices for user {auth_user.user_id}: {e}")
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to list invoices for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve invoices")


@router.post(
    "",
    response_model=InvoiceCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invoice",
    description="""
    Create an invoice and notify the people involved.

    - The recipient identity comes from the customer, overridden by
      recipient_phone / recipient_email; with neither phone nor email the
      request is rejected and nothing is written
    - The sender and every registered user matching the recipient identity
      get an in-app message and a push; the customer gets an email
    - Notification failures never fail the request
    """
)
async def create_new_invoice(
    request: InvoiceCreateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> InvoiceCreateResponse:
    logger.info(f"Creating invoice for user {auth_user.user_id}")

    supabase_client = get_supabase_client()

    try:
        document = await create_document(
            supabase_client,
            INVOICE,
            auth_user.user_id,
            request.model_dump(),
        )
        return InvoiceCreateResponse(
            status="CREATED",
            invoice=_to_response(document),
            message="Invoice created successfully"
        )

    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        logger.error(f"Database error creating invoice: {e}")
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to create invoice for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("create_error", "Failed to create invoice")


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    status_code=status.HTTP_200_OK,
    summary="Get invoice",
)
async def get_invoice(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> InvoiceResponse:
    supabase_client = get_supabase_client()

    try:
        document = await get_document(supabase_client, INVOICE, auth_user, invoice_id)
        if not document:
            raise not_found("Invoice not found")
        return _to_response(document)

    except HTTPException:
        raise
    except APIError:
        raise not_found("Invoice not found")
    except Exception as e:
        logger.error(f"Failed to fetch invoice {invoice_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve invoice")


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update invoice",
)
async def update_existing_invoice(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    request: InvoiceUpdateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> InvoiceUpdateResponse:
    updates = request.model_dump(exclude_unset=True)

    supabase_client = get_supabase_client()

    try:
        updated = await update_document(
            supabase_client, INVOICE, auth_user.user_id, invoice_id, **updates
        )
        if not updated:
            raise not_found("Invoice not found")

        document = await fetch_document(supabase_client, INVOICE, invoice_id) or updated

        return InvoiceUpdateResponse(
            status="UPDATED",
            invoice=_to_response(document),
            message="Invoice updated successfully"
        )

    except HTTPException:
        raise
    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to update invoice {invoice_id}: {e}", exc_info=True)
        raise internal_error("update_error", "Failed to update invoice")


@router.delete(
    "/{invoice_id}",
    response_model=DocumentDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete invoice",
)
async def delete_existing_invoice(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> DocumentDeleteResponse:
    supabase_client = get_supabase_client()

    try:
        if not await delete_document(supabase_client, INVOICE, auth_user.user_id, invoice_id):
            raise not_found("Invoice not found")
        return DocumentDeleteResponse(
            status="DELETED",
            id=invoice_id,
            message="Invoice deleted successfully"
        )

    except HTTPException:
        raise
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to delete invoice {invoice_id}: {e}", exc_info=True)
        raise internal_error("delete_error", "Failed to delete invoice")


@router.post(
    "/{invoice_id}/items",
    response_model=LineItemCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add invoice line item",
)
async def add_invoice_item(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    request: LineItemInput,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> LineItemCreateResponse:
    supabase_client = get_supabase_client()

    try:
        item = await add_line_item(
            supabase_client, INVOICE, auth_user.user_id, invoice_id, request.model_dump()
        )
        if not item:
            raise not_found("Invoice not found")
        return LineItemCreateResponse(
            status="CREATED",
            item=LineItemResponse.model_validate(item),
            message="Line item added successfully"
        )

    except HTTPException:
        raise
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to add item to invoice {invoice_id}: {e}", exc_info=True)
        raise internal_error("create_error", "Failed to add line item")


@router.delete(
    "/{invoice_id}/items/{item_id}",
    response_model=DocumentDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Remove invoice line item",
)
async def remove_invoice_item(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    item_id: Annotated[str, Path(description="Line item UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> DocumentDeleteResponse:
    supabase_client = get_supabase_client()

    try:
        if not await remove_line_item(supabase_client, INVOICE, auth_user.user_id, invoice_id, item_id):
            raise not_found("Invoice not found")
        return DocumentDeleteResponse(
            status="DELETED",
            id=item_id,
            message="Line item removed successfully"
        )

    except HTTPException:
        raise
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to remove item {item_id} from invoice {invoice_id}: {e}", exc_info=True)
        raise internal_error("delete_error", "Failed to remove line item")
