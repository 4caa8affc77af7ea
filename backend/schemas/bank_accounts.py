"""
Pydantic schemas for bank account endpoints.

Only the last four digits of an account number are accepted back out of
the service; full account numbers are never stored.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class BankAccountResponse(BaseModel):
    id: str = Field(..., description="Bank account UUID")
    user_id: str = Field(..., description="Owner user UUID")
    account_holder: str = Field(..., description="Name on the account")
    account_number_last4: Optional[str] = Field(None, description="Last four digits", examples=["4321"])
    ifsc: str = Field(..., description="IFSC code", examples=["HDFC0001234"])
    bank_name: Optional[str] = None
    branch_name: Optional[str] = None
    is_default: Optional[bool] = False
    created_at: Optional[str] = None


class BankAccountListResponse(BaseModel):
    bank_accounts: List[BankAccountResponse]
    count: int


class BankAccountCreateRequest(BaseModel):
    account_holder: str = Field(..., min_length=1, max_length=200)
    ifsc: str = Field(..., min_length=1, max_length=20)
    account_number_last4: Optional[str] = Field(
        None,
        description="Full number or last digits; only the last four digits are kept"
    )
    bank_name: Optional[str] = Field(None, max_length=200)
    branch_name: Optional[str] = Field(None, max_length=200)
    is_default: bool = False


class BankAccountUpdateRequest(BaseModel):
    account_holder: Optional[str] = Field(None, max_length=200)
    ifsc: Optional[str] = Field(None, max_length=20)
    account_number_last4: Optional[str] = None
    bank_name: Optional[str] = Field(None, max_length=200)
    branch_name: Optional[str] = Field(None, max_length=200)
    is_default: Optional[bool] = None


class BankAccountMutationResponse(BaseModel):
    status: str = Field(..., examples=["CREATED", "UPDATED"])
    bank_account: BankAccountResponse
    message: str


class BankAccountDeleteResponse(BaseModel):
    status: str = Field("DELETED")
    bank_account_id: str
    message: str
