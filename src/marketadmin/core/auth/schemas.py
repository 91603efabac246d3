"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel


class TokenData(BaseModel):
    """Claims extracted from a verified access token."""

    user_id: str
    exp: datetime
    type: str = "access"
    jti: str | None = None


class VerifiedIdentity(BaseModel):
    """Result of verifying a bearer credential."""

    subject_id: str
    valid: bool = True
