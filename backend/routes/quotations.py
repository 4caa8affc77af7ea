"""
Quotation API endpoints.

Quotations go through the same creation pipeline and received-documents
view as invoices:
- GET /quotations
- POST /quotations
- GET /quotations/{quotation_id}
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Path, status
from postgrest.exceptions import APIError

from backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from backend.db.client import get_supabase_client
from backend.schemas.quotations import (
    QuotationCreateRequest,
    QuotationCreateResponse,
    QuotationListResponse,
    QuotationResponse,
)
from backend.services.document_service import QUOTATION, create_document, get_document, list_documents
from backend.utils.errors import database_error, internal_error, invalid_request, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotations", tags=["quotations"])


def _to_response(document: Dict[str, Any]) -> QuotationResponse:
    items = sorted(
        document.get(QUOTATION.items_table) or [],
        key=lambda i: i.get("sort_order") or 0
    )
    return QuotationResponse.model_validate({
        **document,
        QUOTATION.items_table: items,
        "total": QUOTATION.total(document),
    })


@router.get(
    "",
    response_model=QuotationListResponse,
    status_code=status.HTTP_200_OK,
    summary="List quotations",
)
async def list_quotations(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> QuotationListResponse:
    """Sent and received quotations, newest first."""
    supabase_client = get_supabase_client()

    try:
        documents = await list_documents(supabase_client, QUOTATION, auth_user)
        quotations = [_to_response(doc) for doc in documents]
        return QuotationListResponse(quotations=quotations, count=len(quotations))

    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to list quotations for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve quotations")


@router.post(
    "",
    response_model=QuotationCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create quotation",
    description="""
    Create a quotation. Recipient rules and notifications are the same as
    for invoices.
    """
)
async def create_new_quotation(
    request: QuotationCreateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> QuotationCreateResponse:
    logger.info(f"Creating quotation for user {auth_user.user_id}")

    supabase_client = get_supabase_client()

    try:
        document = await create_document(
            supabase_client,
            QUOTATION,
            auth_user.user_id,
            request.model_dump(),
        )
        return QuotationCreateResponse(
            status="CREATED",
            quotation=_to_response(document),
            message="Quotation created successfully"
        )

    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        logger.error(f"Database error creating quotation: {e}")
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to create quotation for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("create_error", "Failed to create quotation")


@router.get(
    "/{quotation_id}",
    response_model=QuotationResponse,
    status_code=status.HTTP_200_OK,
    summary="Get quotation",
)
async def get_quotation(
    quotation_id: Annotated[str, Path(description="Quotation UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> QuotationResponse:
    supabase_client = get_supabase_client()

    try:
        document = await get_document(supabase_client, QUOTATION, auth_user, quotation_id)
        if not document:
            raise not_found("Quotation not found")
        return _to_response(document)

    except HTTPException:
        raise
    except APIError:
        raise not_found("Quotation not found")
    except Exception as e:
        logger.error(f"Failed to fetch quotation {quotation_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve quotation")
