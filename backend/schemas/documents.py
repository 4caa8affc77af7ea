"""
Shared pieces of the invoice and quotation schemas.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

# "received" is computed per caller and never persisted
DocumentType = Literal["sent", "received"]


class CustomerSummary(BaseModel):
    """Embedded customer of a document (as stored by the sender)."""
    id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class LineItemInput(BaseModel):
    """
    One line of an invoice or quotation.

    Missing values default to name "Item", qty 1, rate 0 and the position in
    the request as sort_order.
    """
    name: Optional[str] = Field(None, max_length=300, examples=["Consulting"])
    qty: Optional[float] = Field(None, ge=0, examples=[2])
    rate: Optional[float] = Field(None, ge=0, examples=[100])
    sort_order: Optional[int] = Field(None, ge=0)


class LineItemResponse(BaseModel):
    id: str
    name: str
    qty: Optional[float] = 1
    rate: Optional[float] = 0
    sort_order: Optional[int] = 0


class LineItemCreateResponse(BaseModel):
    status: str = Field("CREATED")
    item: LineItemResponse
    message: str


class DocumentDeleteResponse(BaseModel):
    status: str = Field("DELETED")
    id: str
    message: str
