"""
Customer CRUD API endpoints.

Customers are owned by exactly one user. Their phone/email are normalized
on every write because they become the recipient identity of the invoices
and quotations created for them.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status
from postgrest.exceptions import APIError

from backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from backend.db.client import get_supabase_client
from backend.schemas.customers import (
    CustomerCreateRequest,
    CustomerCreateResponse,
    CustomerDeleteResponse,
    CustomerListResponse,
    CustomerResponse,
    CustomerUpdateRequest,
    CustomerUpdateResponse,
)
from backend.services.customer_service import (
    create_customer,
    delete_customer,
    get_customer_by_id,
    get_user_customers,
    update_customer,
)
from backend.utils.errors import database_error, internal_error, invalid_request, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get(
    "",
    response_model=CustomerListResponse,
    status_code=status.HTTP_200_OK,
    summary="List customers",
)
async def list_customers(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CustomerListResponse:
    """List the caller's customers, newest first."""
    supabase_client = get_supabase_client()

    try:
        customers = await get_user_customers(supabase_client, auth_user.user_id)
        return CustomerListResponse(
            customers=[CustomerResponse.model_validate(c) for c in customers],
            count=len(customers),
        )

    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to list customers for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve customers")


@router.post(
    "",
    response_model=CustomerCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create customer",
    description="""
    Create a customer.

    - phone is stored as its last 10 digits (400 if fewer than 10 digits)
    - email is stored trimmed and lowercased (400 if malformed)
    """
)
async def create_new_customer(
    request: CustomerCreateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CustomerCreateResponse:
    logger.info(f"Creating customer for user {auth_user.user_id}")

    supabase_client = get_supabase_client()

    try:
        customer = await create_customer(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            name=request.name,
            phone=request.phone,
            email=request.email,
            initials=request.initials,
            color=request.color,
        )

        return CustomerCreateResponse(
            status="CREATED",
            customer=CustomerResponse.model_validate(customer),
            message="Customer created successfully"
        )

    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        logger.error(f"Database error creating customer: {e}")
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to create customer for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("create_error", "Failed to create customer")


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    status_code=status.HTTP_200_OK,
    summary="Get customer",
)
async def get_customer(
    customer_id: Annotated[str, Path(description="Customer UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CustomerResponse:
    supabase_client = get_supabase_client()

    try:
        customer = await get_customer_by_id(supabase_client, auth_user.user_id, customer_id)
        if not customer:
            raise not_found("Customer not found")
        return CustomerResponse.model_validate(customer)

    except HTTPException:
        raise
    except APIError:
        # Malformed ids surface as APIError; treat them as missing
        raise not_found("Customer not found")
    except Exception as e:
        logger.error(f"Failed to fetch customer {customer_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve customer")


@router.patch(
    "/{customer_id}",
    response_model=CustomerUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update customer",
)
async def update_existing_customer(
    customer_id: Annotated[str, Path(description="Customer UUID")],
    request: CustomerUpdateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CustomerUpdateResponse:
    updates = request.model_dump(exclude_unset=True)

    if not updates:
        raise invalid_request("At least one field must be provided for update")

    supabase_client = get_supabase_client()

    try:
        customer = await update_customer(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            customer_id=customer_id,
            **updates
        )
        if not customer:
            raise not_found("Customer not found")

        logger.info(f"Customer {customer_id} updated")

        return CustomerUpdateResponse(
            status="UPDATED",
            customer=CustomerResponse.model_validate(customer),
            message="Customer updated successfully"
        )

    except HTTPException:
        raise
    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to update customer {customer_id}: {e}", exc_info=True)
        raise internal_error("update_error", "Failed to update customer")


@router.delete(
    "/{customer_id}",
    response_model=CustomerDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete customer",
)
async def delete_existing_customer(
    customer_id: Annotated[str, Path(description="Customer UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CustomerDeleteResponse:
    supabase_client = get_supabase_client()

    try:
        deleted = await delete_customer(supabase_client, auth_user.user_id, customer_id)
        if not deleted:
            raise not_found("Customer not found")

        logger.info(f"Customer {customer_id} deleted by user {auth_user.user_id}")

        return CustomerDeleteResponse(
            status="DELETED",
            customer_id=customer_id,
            message="Customer deleted successfully"
        )

    except HTTPException:
        raise
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to delete customer {customer_id}: {e}", exc_info=True)
        raise internal_error("delete_error", "Failed to delete customer")
