"""Authentication endpoints."""

from fastapi import APIRouter, Depends, status

from app.dependencies import (
    CurrentIdentity,
    DatabaseSession,
    login_rate_limit,
    register_rate_limit,
)
from app.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LogoutResponse,
    MeResponse,
    ProviderAuthResponse,
    RegisterGuestRequest,
    RegisterProviderRequest,
    ResetPasswordRequest,
)
from app.schemas.base import OkResponse
from app.services.auth_service import AuthService

router = APIRouter()


@router.post(
    "/register-guest",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_rate_limit)],
    summary="Register a guest account",
)
async def register_guest(request: RegisterGuestRequest, db: DatabaseSession) -> AuthResponse:
    """
    Create a guest (client) account.

    Args:
        request: E-mail, password and display name
        db: Database session

    Returns:
        New account and access token
    """
    return await AuthService(db).register_guest(request)


@router.post(
    "/register-provider",
    response_model=ProviderAuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_rate_limit)],
    summary="Register a provider account",
)
async def register_provider(
    request: RegisterProviderRequest, db: DatabaseSession
) -> ProviderAuthResponse:
    """
    Create a provider account and submit it for verification.

    Providers must be at least 18. The profile starts out PENDING and stays
    hidden from the public until an admin approves it.

    Args:
        request: Full onboarding payload
        db: Database session

    Returns:
        New account, profile summary and access token
    """
    return await AuthService(db).register_provider(request)


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(login_rate_limit)],
    summary="Log in with e-mail and password",
)
async def login(request: LoginRequest, db: DatabaseSession) -> AuthResponse:
    """Exchange credentials for an access token."""
    return await AuthService(db).login(request.email, request.password)


@router.get("/me", response_model=MeResponse, summary="Current user")
async def me(identity: CurrentIdentity, db: DatabaseSession) -> MeResponse:
    """Current account, with the provider profile for providers."""
    return await AuthService(db).me(identity.id)


@router.post("/logout", response_model=LogoutResponse, summary="Log out")
async def logout(identity: CurrentIdentity) -> LogoutResponse:
    """
    Log out.

    Tokens are stateless; the client discards its copy.
    """
    return LogoutResponse()


@router.post("/change-password", response_model=OkResponse, summary="Change password")
async def change_password(
    request: ChangePasswordRequest,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> OkResponse:
    """Replace the password after checking the current one."""
    await AuthService(db).change_password(
        identity.id, request.current_password, request.new_password
    )
    return OkResponse()


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
    summary="Request a password reset",
)
async def forgot_password(
    request: ForgotPasswordRequest, db: DatabaseSession
) -> ForgotPasswordResponse:
    """
    Start a password reset.

    Always succeeds so the response does not reveal whether the account
    exists.
    """
    return await AuthService(db).forgot_password(request.email)


@router.post("/reset-password", response_model=OkResponse, summary="Reset password")
async def reset_password(request: ResetPasswordRequest, db: DatabaseSession) -> OkResponse:
    """Redeem a reset token and set a new password."""
    await AuthService(db).reset_password(request.token, request.new_password)
    return OkResponse()
