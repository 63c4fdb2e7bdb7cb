"""Authentication schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from app.core.roles import UserRole
from app.schemas.base import CamelModel, MediaString, ServiceTag
from app.schemas.providers import ProviderProfileResponse, RegistrationRates, VerificationStatus


class RegisterGuestRequest(CamelModel):
    """Guest (client) sign-up."""

    email: EmailStr
    password: str = Field(..., min_length=6)
    display_name: str = Field(..., min_length=1, max_length=80)


class RegisterProviderRequest(CamelModel):
    """Provider sign-up with the full onboarding packet."""

    # Account basics
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone_number: str = Field(..., min_length=7, max_length=30)

    # Personal details
    real_name: str = Field(..., min_length=2, max_length=120)
    display_name: str = Field(..., min_length=2, max_length=80)
    dob: str = Field(..., min_length=8, description="Date of birth, YYYY-MM-DD")
    gender: str = Field(..., min_length=2, max_length=40)
    ethnicity: str = Field(..., min_length=2, max_length=60)
    state: str = Field(..., min_length=2, max_length=60)
    city: str = Field(..., min_length=2, max_length=60)

    # Physical stats
    height: str = Field(..., min_length=1, max_length=30)
    weight: str = Field(..., min_length=1, max_length=30)
    bust_size: str | None = Field(None, min_length=1, max_length=30)
    build: str = Field(..., min_length=1, max_length=40)
    hair_color: str = Field(..., min_length=1, max_length=40)
    eye_color: str = Field(..., min_length=1, max_length=40)

    # Services & rates
    services: list[ServiceTag] = Field(..., min_length=1)
    rates: RegistrationRates

    # Gallery
    cover_image: MediaString
    profile_image: MediaString
    gallery_images: list[MediaString] = Field(..., min_length=3)

    # Identity verification
    verification_selfie: MediaString


class LoginRequest(CamelModel):
    """Email and password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    """Password reset request."""

    email: EmailStr


class ResetPasswordRequest(CamelModel):
    """Password reset redemption."""

    token: str = Field(..., min_length=10)
    new_password: str = Field(..., min_length=6)


class ChangePasswordRequest(CamelModel):
    """Authenticated password change."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class UserResponse(CamelModel):
    """Account summary returned after authentication."""

    id: UUID
    email: str
    role: UserRole
    display_name: str | None = None


class UserDetailResponse(UserResponse):
    """Account details for the current user."""

    phone: str | None = None
    created_at: datetime


class AuthResponse(CamelModel):
    """Account and access token."""

    user: UserResponse
    access_token: str


class RegisteredProviderProfile(CamelModel):
    """Profile state right after onboarding."""

    id: UUID
    verification_status: VerificationStatus
    is_suspended: bool
    subscription_expires_at: datetime | None = None


class ProviderAuthResponse(AuthResponse):
    """Provider account, new profile and access token."""

    provider_profile: RegisteredProviderProfile


class MeResponse(CamelModel):
    """Current user with provider profile when applicable."""

    user: UserDetailResponse
    provider_profile: ProviderProfileResponse | None = None


class LogoutResponse(CamelModel):
    """Logout acknowledgement."""

    ok: bool = True
    message: str = "Logged out"


class ForgotPasswordResponse(CamelModel):
    """Forgot-password acknowledgement; token only when exposure is enabled."""

    ok: bool = True
    token: str | None = None
