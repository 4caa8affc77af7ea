"""
Pydantic schemas for quotation endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from backend.schemas.documents import CustomerSummary, DocumentType, LineItemInput, LineItemResponse


class QuotationResponse(BaseModel):
    id: str = Field(..., description="Quotation UUID")
    user_id: str = Field(..., description="Sender user UUID")
    customer_id: Optional[str] = None
    quo_number: str = Field(..., examples=["QUO-0007"])
    type: DocumentType = "sent"
    client_name: Optional[str] = None
    amount: Optional[float] = None
    date: Optional[str] = None
    version: Optional[str] = None
    valid_until: Optional[str] = None
    view_status: Optional[str] = None
    status: Optional[str] = None
    recipient_phone: Optional[str] = None
    recipient_email: Optional[str] = None
    created_at: Optional[str] = None
    customers: Optional[CustomerSummary] = None
    quotation_items: List[LineItemResponse] = Field(default_factory=list)
    total: float = Field(0, description="Line item total, or amount when there are no items")


class QuotationListResponse(BaseModel):
    quotations: List[QuotationResponse]
    count: int


class QuotationCreateRequest(BaseModel):
    """
    Request to create a quotation.

    Same recipient rules as invoices: the customer's phone/email, overridden
    by recipient_phone / recipient_email, must yield at least one of the two.
    """
    quo_number: str = Field(..., max_length=100, examples=["QUO-0007"])
    customer_id: Optional[str] = None
    recipient_phone: Optional[str] = None
    recipient_email: Optional[str] = None
    client_name: Optional[str] = Field(None, max_length=200)
    amount: Optional[float] = Field(None, ge=0)
    date: Optional[str] = Field(None, description="Defaults to today")
    valid_until: Optional[str] = None
    status: Optional[str] = Field(None, description="Defaults to 'draft'")
    items: List[LineItemInput] = Field(default_factory=list)


class QuotationCreateResponse(BaseModel):
    status: str = Field("CREATED")
    quotation: QuotationResponse
    message: str = Field(..., examples=["Quotation created successfully"])
