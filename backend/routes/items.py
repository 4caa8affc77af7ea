"""
Catalogue item CRUD API endpoints.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status
from postgrest.exceptions import APIError

from backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from backend.db.client import get_supabase_client
from backend.schemas.items import (
    ItemCreateRequest,
    ItemDeleteResponse,
    ItemListResponse,
    ItemMutationResponse,
    ItemResponse,
    ItemUpdateRequest,
)
from backend.services.item_service import (
    create_item,
    delete_item,
    get_item_by_id,
    get_user_items,
    update_item,
)
from backend.utils.errors import database_error, internal_error, invalid_request, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["items"])


@router.get("", response_model=ItemListResponse, summary="List items")
async def list_items(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ItemListResponse:
    supabase_client = get_supabase_client()

    try:
        items = await get_user_items(supabase_client, auth_user.user_id)
        return ItemListResponse(
            items=[ItemResponse.model_validate(i) for i in items],
            count=len(items),
        )
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to list items for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve items")


@router.post(
    "",
    response_model=ItemMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create item",
)
async def create_new_item(
    request: ItemCreateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ItemMutationResponse:
    supabase_client = get_supabase_client()

    try:
        item = await create_item(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            name=request.name,
            rate=request.rate,
            description=request.description,
        )
        return ItemMutationResponse(
            status="CREATED",
            item=ItemResponse.model_validate(item),
            message="Item created successfully"
        )
    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to create item for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("create_error", "Failed to create item")


@router.get("/{item_id}", response_model=ItemResponse, summary="Get item")
async def get_item(
    item_id: Annotated[str, Path(description="Item UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ItemResponse:
    supabase_client = get_supabase_client()

    try:
        item = await get_item_by_id(supabase_client, auth_user.user_id, item_id)
        if not item:
            raise not_found("Item not found")
        return ItemResponse.model_validate(item)
    except HTTPException:
        raise
    except APIError:
        raise not_found("Item not found")
    except Exception as e:
        logger.error(f"Failed to fetch item {item_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve item")


@router.patch("/{item_id}", response_model=ItemMutationResponse, summary="Update item")
async def update_existing_item(
    item_id: Annotated[str, Path(description="Item UUID")],
    request: ItemUpdateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ItemMutationResponse:
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise invalid_request("At least one field must be provided for update")

    supabase_client = get_supabase_client()

    try:
        item = await update_item(supabase_client, auth_user.user_id, item_id, **updates)
        if not item:
            raise not_found("Item not found")
        return ItemMutationResponse(
            status="UPDATED",
            item=ItemResponse.model_validate(item),
            message="Item updated successfully"
        )
    except HTTPException:
        raise
    except ValueError as e:
        raise invalid_request(str(e))
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to update item {item_id}: {e}", exc_info=True)
        raise internal_error("update_error", "Failed to update item")


@router.delete("/{item_id}", response_model=ItemDeleteResponse, summary="Delete item")
async def delete_existing_item(
    item_id: Annotated[str, Path(description="Item UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ItemDeleteResponse:
    supabase_client = get_supabase_client()

    try:
        if not await delete_item(supabase_client, auth_user.user_id, item_id):
            raise not_found("Item not found")
        return ItemDeleteResponse(status="DELETED", item_id=item_id, message="Item deleted successfully")
    except HTTPException:
        raise
    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to delete item {item_id}: {e}", exc_info=True)
        raise internal_error("delete_error", "Failed to delete item")
