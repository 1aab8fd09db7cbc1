"""Authentication schemas for token handling."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class TokenData(BaseModel):
    """Data extracted from a JWT token.

    Attributes:
        account_id: The account's UUID
        exp: Token expiration time
        type: Token type
        jti: Unique token ID
    """

    account_id: UUID
    exp: datetime
    type: str = "access"
    jti: str | None = None


class AccessToken(BaseModel):
    """Bearer token returned by the login endpoint.

    Attributes:
        access_token: Short-lived JWT for API access
        token_type: Always "bearer"
        expires_in: Access token expiration in seconds
        must_change_password: Whether the account still has to set a password
    """

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    must_change_password: bool = False
