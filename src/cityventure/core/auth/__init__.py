"""Authentication module for JWT and password handling."""

from cityventure.core.auth.backend import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from cityventure.core.auth.dependencies import CurrentAccount, get_current_account
from cityventure.core.auth.schemas import AccessToken, TokenData


__all__ = [
    "AccessToken",
    "CurrentAccount",
    "TokenData",
    "create_access_token",
    "decode_token",
    "get_current_account",
    "hash_password",
    "verify_password",
]
