"""
Authentication Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional


class PrincipalResponse(BaseModel):
    """
    Principal carried by an identity-provider token.

    Used by GET /auth/me endpoint.
    """
    sub: str = Field(..., description="Subject (user id at the identity provider)")
    email: Optional[str] = Field(default=None, description="Email address")
    admin: bool = Field(default=False, description="Admin custom claim")
