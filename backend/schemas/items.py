"""
Pydantic schemas for catalogue item endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ItemResponse(BaseModel):
    id: str = Field(..., description="Item UUID")
    user_id: str = Field(..., description="Owner user UUID")
    name: str = Field(..., description="Item name")
    rate: Optional[float] = Field(0, description="Default unit rate")
    description: Optional[str] = None
    created_at: Optional[str] = None


class ItemListResponse(BaseModel):
    items: List[ItemResponse]
    count: int


class ItemCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, examples=["Website design"])
    rate: Optional[float] = Field(None, ge=0, examples=[15000])
    description: Optional[str] = Field(None, max_length=1000)


class ItemUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    rate: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=1000)


class ItemMutationResponse(BaseModel):
    status: str = Field(..., examples=["CREATED", "UPDATED"])
    item: ItemResponse
    message: str


class ItemDeleteResponse(BaseModel):
    status: str = Field("DELETED")
    item_id: str
    message: str
