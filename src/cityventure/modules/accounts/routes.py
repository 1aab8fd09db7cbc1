"""Account API routes: login, self-service steps, and the caller's permissions.

Managing other accounts is scoped by business and lives with the grant
routes.
"""

from cityventure.config import settings
from cityventure.core.auth import AccessToken, CurrentAccount, create_access_token, hash_password
from cityventure.core.permissions import PermissionCacheDep
from cityventure.modules.accounts import router
from cityventure.modules.accounts.schemas import (
    AccountResponse,
    LoginRequest,
    PasswordChangeRequest,
    PermissionSetResponse,
)
from cityventure.modules.accounts.services import AccountSvc


# ============================================================
# Authentication
# ============================================================


@router.post(
    "/auth/token",
    response_model=AccessToken,
    summary="Log in",
    description="Exchange email and password for a bearer access token.",
)
async def login(data: LoginRequest, service: AccountSvc) -> AccessToken:
    """Log in with email and password."""
    account = await service.authenticate(data.email, data.password)
    return AccessToken(
        access_token=create_access_token(account.id),
        expires_in=settings.access_token_expire_minutes * 60,
        must_change_password=account.must_change_password,
    )


# ============================================================
# Current Account
# ============================================================


@router.get(
    "/me/permissions",
    response_model=PermissionSetResponse,
    summary="Get my permissions",
    description="Returns the caller's resolved permission set.",
)
async def get_my_permissions(
    current_account: CurrentAccount,
    cache: PermissionCacheDep,
) -> PermissionSetResponse:
    """Get the caller's permissions."""
    permissions = await cache.get(current_account.id)
    return PermissionSetResponse(
        account_id=current_account.id,
        permissions=sorted(permissions),
    )


@router.post(
    "/accounts/me/password",
    response_model=AccountResponse,
    summary="Change my password",
    description="Replace the initial password and clear the must-change flag.",
)
async def change_my_password(
    data: PasswordChangeRequest,
    current_account: CurrentAccount,
    service: AccountSvc,
) -> AccountResponse:
    """Change the caller's password."""
    account = await service.complete_password_change(
        current_account.id, hash_password(data.new_password)
    )
    return AccountResponse.model_validate(account)


@router.post(
    "/accounts/me/profile-complete",
    response_model=AccountResponse,
    summary="Complete my profile",
    description="Mark the caller's staff profile as complete.",
)
async def complete_my_profile(
    current_account: CurrentAccount,
    service: AccountSvc,
) -> AccountResponse:
    """Mark the caller's profile as complete."""
    account = await service.complete_profile(current_account.id)
    return AccountResponse.model_validate(account)

