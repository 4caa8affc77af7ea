"""
Pydantic schemas for SabPaisa payment endpoints.

The mobile client speaks camelCase here, matching the gateway's own field
names; snake_case is accepted too.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaymentCreateRequest(_CamelModel):
    invoice_id: str = Field(..., min_length=1)
    payer_name: str = Field(..., min_length=1)
    payer_email: str = Field(..., min_length=1)
    payer_mobile: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    client_txn_id: Optional[str] = Field(None, max_length=18)


class PaymentCreateResponse(_CamelModel):
    redirect_url: str = Field(..., description="Relative URL of the auto-submit page, valid 5 minutes")
    payment_url: str
    enc_data: str
    client_code: str
    client_txn_id: str
