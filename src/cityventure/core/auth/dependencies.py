"""FastAPI dependencies for authentication.

This module provides FastAPI dependency injection functions for:
- Extracting and validating JWT tokens
- Getting the current authenticated account
"""

from typing import Annotated, Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cityventure.api.dependencies import DBSession
from cityventure.core.auth.backend import decode_token
from cityventure.core.auth.schemas import TokenData
from cityventure.core.errors import UnauthorizedError


# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_token_data(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> TokenData:
    """Extract and validate token data from the Authorization header.

    Args:
        credentials: Bearer token credentials from the request

    Returns:
        Decoded token data

    Raises:
        UnauthorizedError: If token is missing or invalid
    """
    if not credentials:
        raise UnauthorizedError(
            "Missing authentication token",
            error_code="missing_token",
        )

    token_data = decode_token(credentials.credentials)
    if not token_data:
        raise UnauthorizedError(
            "Invalid or expired token",
            error_code="invalid_token",
        )

    if token_data.type != "access":
        raise UnauthorizedError(
            "Invalid token type",
            error_code="invalid_token_type",
        )

    return token_data


async def get_current_account(
    request: Request,
    token_data: Annotated[TokenData, Depends(get_token_data)],
    db: DBSession,
) -> Any:  # Returns Account, but use Any to avoid circular import
    """Get the currently authenticated account.

    Args:
        request: The incoming request, tagged with the account ID for logging
        token_data: Validated token data
        db: Database session

    Returns:
        The authenticated account

    Raises:
        UnauthorizedError: If the account is missing or deactivated
    """
    from cityventure.modules.accounts.repos import AccountRepository  # noqa: PLC0415

    repo = AccountRepository(db)
    account = await repo.get_by_id(token_data.account_id)

    if not account:
        raise UnauthorizedError(
            "Account not found",
            error_code="account_not_found",
        )

    if not account.is_active:
        raise UnauthorizedError(
            "Account is deactivated",
            error_code="account_inactive",
        )

    request.state.account_id = str(account.id)
    return account


# Use Any for Account type to avoid circular imports at runtime
CurrentAccount = Annotated[Any, Depends(get_current_account)]
