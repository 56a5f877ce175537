"""
backend/fundiconnect/lifecycle/schemas.py

Payloads returned by lifecycle operations that span more than one record.
"""

from pydantic import BaseModel, Field

from fundiconnect.job.schemas import JobRead
from fundiconnect.quote.schemas import QuoteRead


class AcceptQuoteOutcome(BaseModel):
    """Result of accepting a quote: the accepted quote, the assigned job and the opened chat."""

    quote: QuoteRead
    job: JobRead
    chat_id: str | None = Field(
        None, description="Chat between client and provider; null if provisioning failed"
    )
