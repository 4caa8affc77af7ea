"""
Bank account CRUD API endpoints.

Bank accounts are the payout details printed on a user's invoices. IFSC and
account holder are mandatory; only the last four account digits are kept.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status
from postgrest.exceptions import APIError

from backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from backend.db.client import get_supabase_client
from backend.schemas.bank_accounts import (
    BankAccountCreateRequest,
    BankAccountDeleteResponse,
    BankAccountListResponse,
    BankAccountMutationResponse,
    BankAccountResponse,
    BankAccountUpdateRequest,
)
from backend.services.bank_account_service import (
    create_bank_account,
    delete_bank_account,
    get_bank_account_by_id,
    get_user_bank_accounts,
    update_bank_account,
)
from backend.utils.errors import database_error, internal_error, invalid_request, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bank-accounts", tags=["bank-accounts"])


@router.get("", response_model=BankAccountListResponse, summary="List bank accounts")
async def list_bank_accounts(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> BankAccountListResponse:
    supabase_client = get_supabase_client()

    try:
        accounts = await get_user_bank_accounts(supabase_client, auth_user.user_id)
        return BankAccountListResponse(
            bank_accounts=[BankAccountResponse.model_validate(a) for a in accounts],
            count=len(accounts),
        )
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to list bank accounts for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve bank accounts")


@router.post(
    "",
    response_model=BankAccountMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create bank account",
)
async def create_new_bank_account(
    request: BankAccountCreateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> BankAccountMutationResponse:
    supabase_client = get_supabase_client()

    try:
        account = await create_bank_account(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            account_holder=request.account_holder,
            ifsc=request.ifsc,
            account_number_last4=request.account_number_last4,
            bank_name=request.bank_name,
            branch_name=request.branch_name,
            is_default=request.is_default,
        )
        return BankAccountMutationResponse(
            status="CREATED",
            bank_account=BankAccountResponse.model_validate(account),
            message="Bank account created successfully"
        )
    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to create bank account for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("create_error", "Failed to create bank account")


@router.get("/{account_id}", response_model=BankAccountResponse, summary="Get bank account")
async def get_bank_account(
    account_id: Annotated[str, Path(description="Bank account UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> BankAccountResponse:
    supabase_client = get_supabase_client()

    try:
        account = await get_bank_account_by_id(supabase_client, auth_user.user_id, account_id)
        if not account:
            raise not_found("Bank account not found")
        return BankAccountResponse.model_validate(account)
    except HTTPException:
        raise
    except APIError:
        raise not_found("Bank account not found")
    except Exception as e:
        logger.error(f"Failed to fetch bank account {account_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve bank account")


@router.patch("/{account_id}", response_model=BankAccountMutationResponse, summary="Update bank account")
async def update_existing_bank_account(
    account_id: Annotated[str, Path(description="Bank account UUID")],
    request: BankAccountUpdateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> BankAccountMutationResponse:
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise invalid_request("At least one field must be provided for update")

    supabase_client = get_supabase_client()

    try:
        account = await update_bank_account(supabase_client, auth_user.user_id, account_id, **updates)
        if not account:
            raise not_found("Bank account not found")
        return BankAccountMutationResponse(
            status="UPDATED",
            bank_account=BankAccountResponse.model_validate(account),
            message="Bank account updated successfully"
        )
    except HTTPException:
        raise
    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to update bank account {account_id}: {e}", exc_info=True)
        raise internal_error("update_error", "Failed to update bank account")


@router.delete("/{account_id}", response_model=BankAccountDeleteResponse, summary="Delete bank account")
async def delete_existing_bank_account(
    account_id: Annotated[str, Path(description="Bank account UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> BankAccountDeleteResponse:
    supabase_client = get_supabase_client()

    try:
        if not await delete_bank_account(supabase_client, auth_user.user_id, account_id):
            raise not_found("Bank account not found")
        return BankAccountDeleteResponse(
            status="DELETED",
            bank_account_id=account_id,
            message="Bank account deleted successfully"
        )
    except HTTPException:
        raise
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to delete bank account {account_id}: {e}", exc_info=True)
        raise internal_error("delete_error", "Failed to delete bank account")
