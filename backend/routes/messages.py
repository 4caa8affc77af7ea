"""
In-app message feed endpoints.

Messages are written by the notification fan-out when documents are
created; the owner can only list them and mark them read.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status
from postgrest.exceptions import APIError

from backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from backend.db.client import get_supabase_client
from backend.schemas.messages import MessageListResponse, MessageReadResponse, MessageResponse
from backend.services.message_service import list_messages, mark_message_read
from backend.utils.errors import database_error, internal_error, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("", response_model=MessageListResponse, status_code=status.HTTP_200_OK, summary="List messages")
async def get_messages(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> MessageListResponse:
    supabase_client = get_supabase_client()

    try:
        rows = await list_messages(supabase_client, auth_user.user_id)
        messages = [MessageResponse.model_validate(m) for m in rows]
        return MessageListResponse(
            messages=messages,
            count=len(messages),
            unread_count=sum(1 for m in messages if m.unread),
        )

    except APIError as e:
        raise database_error(e)
    except Exception as e:
        logger.error(f"Failed to list messages for user {auth_user.user_id}: {e}", exc_info=True)
        raise internal_error("fetch_error", "Failed to retrieve messages")


@router.patch(
    "/{message_id}/read",
    response_model=MessageReadResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark message read",
)
async def read_message(
    message_id: Annotated[str, Path(description="Message UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> MessageReadResponse:
    supabase_client = get_supabase_client()

    try:
        message = await mark_message_read(supabase_client, auth_user.user_id, message_id)
        if not message:
            raise not_found("Message not found")
        return MessageReadResponse(status="UPDATED", message=MessageResponse.model_validate(message))

    except HTTPException:
        raise
    except APIError:
        raise not_found("Message not found")
    except Exception as e:
        logger.error(f"Failed to mark message {message_id} read: {e}", exc_info=True)
        raise internal_error("update_error", "Failed to update message")
