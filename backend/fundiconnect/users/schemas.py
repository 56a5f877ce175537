"""
backend/fundiconnect/users/schemas.py

User Schemas
- TokenPayload: Decoded bearer token issued by the identity service
"""

from uuid import UUID

from pydantic import BaseModel, Field

from fundiconnect.database.enums import UserRole


class TokenPayload(BaseModel):
    """
    Decoded JWT payload structure.
    """

    sub: UUID = Field(..., description="Subject (user ID)")
    role: UserRole | None = Field(None, description="User role encoded in the token")
    exp: int | None = Field(None, description="Expiration timestamp of the token")
