"""
Pydantic schemas for customer CRUD endpoints.

A customer's phone/email become the recipient identity of the invoices and
quotations created for them, so both are normalized on every write.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class CustomerResponse(BaseModel):
    id: str = Field(..., description="Customer UUID")
    user_id: str = Field(..., description="Owner user UUID")
    name: str = Field(..., description="Customer name")
    phone: Optional[str] = Field(None, description="Canonical phone (last 10 digits)")
    email: Optional[str] = Field(None, description="Canonical email")
    initials: Optional[str] = Field(None, description="Avatar initials")
    color: Optional[str] = Field(None, description="Avatar color")
    created_at: Optional[str] = Field(None, description="ISO-8601 creation timestamp")


class CustomerListResponse(BaseModel):
    customers: List[CustomerResponse] = Field(..., description="Customers, newest first")
    count: int = Field(..., description="Number of customers returned")


class CustomerCreateRequest(BaseModel):
    """
    Request to create a customer.

    Phone and email are optional here, but an invoice or quotation can only
    be created for a customer that has at least one of them.
    """
    name: str = Field(..., min_length=1, max_length=200, examples=["Rahul Sharma"])
    phone: Optional[str] = Field(None, examples=["+91 98765 43210"])
    email: Optional[str] = Field(None, examples=["rahul@example.com"])
    initials: Optional[str] = Field(None, max_length=4)
    color: Optional[str] = Field(None, max_length=30)


class CustomerCreateResponse(BaseModel):
    status: str = Field("CREATED", description="Indicates successful creation")
    customer: CustomerResponse
    message: str = Field(..., examples=["Customer created successfully"])


class CustomerUpdateRequest(BaseModel):
    """Partial update. Empty phone/email clears the field."""
    name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = None
    email: Optional[str] = None
    initials: Optional[str] = Field(None, max_length=4)
    color: Optional[str] = Field(None, max_length=30)


class CustomerUpdateResponse(BaseModel):
    status: str = Field("UPDATED", description="Indicates successful update")
    customer: CustomerResponse
    message: str = Field(..., examples=["Customer updated successfully"])


class CustomerDeleteResponse(BaseModel):
    status: str = Field("DELETED", description="Indicates successful deletion")
    customer_id: str
    message: str = Field(..., examples=["Customer deleted successfully"])
