"""
Pydantic schemas for the in-app message feed.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    timestamp: Optional[str] = Field(None, description="ISO-8601 time the event happened")
    icon: Optional[str] = Field(None, examples=["document-text"])
    icon_color: Optional[str] = Field(None, examples=["#7C3AED"])
    unread: bool = True
    created_at: Optional[str] = None


class MessageListResponse(BaseModel):
    messages: List[MessageResponse] = Field(..., description="Newest first")
    count: int
    unread_count: int


class MessageReadResponse(BaseModel):
    status: str = Field("UPDATED")
    message: MessageResponse
