"""
Pydantic schemas for invoice endpoints.

An invoice is addressed to a recipient identity (phone and/or email) taken
from its customer or from explicit recipient_phone / recipient_email
overrides. The identity is fixed at creation and decides who else can see
the invoice as "received".
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from backend.schemas.documents import CustomerSummary, DocumentType, LineItemInput, LineItemResponse


class InvoiceResponse(BaseModel):
    """
    Invoice as seen by the caller.

    type is "sent" for the owner and "received" for a registered user whose
    phone/email matches the recipient identity.
    """
    id: str = Field(..., description="Invoice UUID")
    user_id: str = Field(..., description="Sender user UUID")
    customer_id: Optional[str] = None
    number: str = Field(..., description="Invoice number", examples=["INV-0042"])
    type: DocumentType = "sent"
    status: Optional[str] = Field(None, examples=["pending", "paid"])
    due_date: Optional[str] = None
    notes: Optional[str] = None
    include_gst: Optional[bool] = None
    payment_type: Optional[str] = None
    recipient_phone: Optional[str] = None
    recipient_email: Optional[str] = None
    created_at: Optional[str] = None
    customers: Optional[CustomerSummary] = Field(None, description="Embedded customer")
    invoice_items: List[LineItemResponse] = Field(default_factory=list)
    total: float = Field(0, description="Sum of qty x rate over the line items")


class InvoiceListResponse(BaseModel):
    invoices: List[InvoiceResponse] = Field(..., description="Sent and received invoices, newest first")
    count: int


class InvoiceCreateRequest(BaseModel):
    """
    Request to create an invoice.

    At least one of the customer's phone/email or an explicit recipient
    override must be present, otherwise the request is rejected.
    """
    number: str = Field(..., max_length=100, examples=["INV-0042"])
    customer_id: Optional[str] = Field(None, description="Customer UUID owned by the caller")
    recipient_phone: Optional[str] = Field(None, description="Overrides the customer's phone")
    recipient_email: Optional[str] = Field(None, description="Overrides the customer's email")
    due_date: Optional[str] = Field(None, examples=["2026-11-30"])
    status: Optional[str] = Field(None, description="Defaults to 'pending'")
    notes: Optional[str] = Field(None, max_length=2000)
    include_gst: Optional[bool] = Field(None, description="Defaults to true")
    payment_type: Optional[str] = None
    items: List[LineItemInput] = Field(default_factory=list)


class InvoiceCreateResponse(BaseModel):
    status: str = Field("CREATED")
    invoice: InvoiceResponse
    message: str = Field(..., examples=["Invoice created successfully"])


class InvoiceUpdateRequest(BaseModel):
    """Editable invoice fields. Customer and recipient identity cannot change."""
    number: Optional[str] = Field(None, max_length=100)
    due_date: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=2000)
    include_gst: Optional[bool] = None
    payment_type: Optional[str] = None


class InvoiceUpdateResponse(BaseModel):
    status: str = Field("UPDATED")
    invoice: InvoiceResponse
    message: str
