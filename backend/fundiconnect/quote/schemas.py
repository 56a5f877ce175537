"""
backend/fundiconnect/quote/schemas.py

Quote Schemas
- QuoteCreate: Provider's priced offer for an open job
- QuoteAcceptRequest: Body of the accept call (the job the quote is expected to belong to)
- QuoteRead: Quote as returned to clients and providers
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fundiconnect.quote.models import QuoteStatus


class QuoteCreate(BaseModel):
    job_id: UUID = Field(..., description="Job being quoted")
    amount: float = Field(..., gt=0, description="Quoted price")
    currency: str = Field("KES", min_length=3, max_length=3, description="ISO currency code")
    message_to_client: str = Field(..., min_length=1, description="Message to the client")

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, value: str) -> str:
        return value.strip().upper()


class QuoteAcceptRequest(BaseModel):
    job_id: UUID = Field(..., description="Job the quote must belong to")


class QuoteRead(BaseModel):
    id: UUID
    job_id: UUID
    provider_id: UUID
    client_id: UUID
    amount: float
    currency: str
    message_to_client: str
    status: QuoteStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
