"""Authentication service for accounts, credentials and password resets."""

from datetime import UTC, date, datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
    UnauthorizedException,
)
from app.core.mailer import build_reset_link, send_password_reset_email
from app.core.roles import UserRole
from app.core.security import (
    create_access_token,
    generate_reset_token,
    get_password_hash,
    hash_reset_token,
    verify_password,
)
from app.database import is_unique_violation, transaction
from app.models.providers import provider_media, provider_profiles
from app.models.users import password_reset_tokens, users
from app.schemas.auth import (
    AuthResponse,
    ForgotPasswordResponse,
    MeResponse,
    ProviderAuthResponse,
    RegisteredProviderProfile,
    RegisterGuestRequest,
    RegisterProviderRequest,
    UserDetailResponse,
    UserResponse,
)
from app.schemas.providers import ProviderProfileResponse, ProviderStats

logger = structlog.get_logger(__name__)

MINIMUM_PROVIDER_AGE = 18

USER_COLUMNS = (users.c.id, users.c.email, users.c.role, users.c.display_name)


def normalize_email(email: str) -> str:
    """Trim and lower-case an e-mail address."""
    return email.strip().lower()


def calculate_age(dob: str, today: date | None = None) -> int | None:
    """
    Compute age in whole years from a ``YYYY-MM-DD`` date of birth.

    The birthday itself counts: someone born on this day eighteen years ago
    is 18.

    Args:
        dob: Date of birth
        today: Reference date, defaults to the current UTC date

    Returns:
        Age in years, or None if the date cannot be parsed
    """
    try:
        born = datetime.strptime(dob.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None

    today = today or datetime.now(UTC).date()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def issue_access_token(user_id: UUID, role: str) -> str:
    """Sign an access token carrying the subject and role."""
    return create_access_token({"sub": str(user_id), "role": UserRole(role).value})


class AuthService:
    """Service for registration, login and password management."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def register_guest(self, data: RegisterGuestRequest) -> AuthResponse:
        """
        Create a guest account.

        Args:
            data: Sign-up payload

        Returns:
            New account and access token

        Raises:
            ConflictException: If the e-mail is already registered
        """
        password_hash = get_password_hash(data.password)

        try:
            async with transaction(self.db):
                result = await self.db.execute(
                    insert(users)
                    .values(
                        email=normalize_email(data.email),
                        password_hash=password_hash,
                        role=UserRole.GUEST.value,
                        display_name=data.display_name,
                    )
                    .returning(*USER_COLUMNS)
                )
                user = dict(result.mappings().one())
        except IntegrityError as e:
            if is_unique_violation(e):
                raise ConflictException("Email already in use") from e
            raise

        logger.info("user_registered", user_id=str(user["id"]), role=user["role"])

        return AuthResponse(
            user=UserResponse.model_validate(user),
            access_token=issue_access_token(user["id"], user["role"]),
        )

    async def register_provider(self, data: RegisterProviderRequest) -> ProviderAuthResponse:
        """
        Create a provider account with its profile and media.

        The account, a PENDING profile and every media row are written in a
        single transaction. Personal details such as the real name are kept
        in the profile's stats map, which is only shown to the owner and to
        admins.

        Args:
            data: Full onboarding payload

        Returns:
            New account, profile summary and access token

        Raises:
            BadRequestException: If the date of birth is invalid or under 18
            ConflictException: If the e-mail is already registered
        """
        age = calculate_age(data.dob)
        if age is None:
            raise BadRequestException("Invalid DOB format (expected YYYY-MM-DD)")
        if age < MINIMUM_PROVIDER_AGE:
            raise BadRequestException("You must be 18+ to register as a provider")

        password_hash = get_password_hash(data.password)

        stats = ProviderStats(
            real_name=data.real_name,
            dob=data.dob,
            age=age,
            gender=data.gender,
            ethnicity=data.ethnicity,
            height=data.height,
            weight=data.weight,
            bust_size=data.bust_size,
            build=data.build,
            hair_color=data.hair_color,
            eye_color=data.eye_color,
            phone_number=data.phone_number,
            verification_selfie=data.verification_selfie,
        ).model_dump(by_alias=True, exclude_none=True)

        try:
            async with transaction(self.db):
                result = await self.db.execute(
                    insert(users)
                    .values(
                        email=normalize_email(data.email),
                        password_hash=password_hash,
                        role=UserRole.PROVIDER.value,
                        display_name=data.display_name,
                        phone=data.phone_number,
                    )
                    .returning(*USER_COLUMNS)
                )
                user = dict(result.mappings().one())

                result = await self.db.execute(
                    insert(provider_profiles)
                    .values(
                        user_id=user["id"],
                        display_name=data.display_name,
                        state=data.state,
                        city=data.city,
                        services=data.services,
                        rates=data.rates.model_dump(by_alias=True),
                        stats=stats,
                        verification_status="PENDING",
                    )
                    .returning(
                        provider_profiles.c.id,
                        provider_profiles.c.verification_status,
                        provider_profiles.c.is_suspended,
                        provider_profiles.c.subscription_expires_at,
                    )
                )
                profile = dict(result.mappings().one())

                # Selfie is stored as a plain media row as well as in stats
                media_rows = [
                    {"url": data.cover_image, "is_cover": True, "is_avatar": False},
                    {"url": data.profile_image, "is_cover": False, "is_avatar": True},
                    *(
                        {"url": url, "is_cover": False, "is_avatar": False}
                        for url in data.gallery_images
                    ),
                    {"url": data.verification_selfie, "is_cover": False, "is_avatar": False},
                ]
                await self.db.execute(
                    insert(provider_media),
                    [{"provider_id": profile["id"], "type": "IMAGE", **row} for row in media_rows],
                )
        except IntegrityError as e:
            if is_unique_violation(e):
                raise ConflictException("Email already in use") from e
            raise

        logger.info(
            "user_registered",
            user_id=str(user["id"]),
            role=user["role"],
            provider_id=str(profile["id"]),
        )

        return ProviderAuthResponse(
            user=UserResponse.model_validate(user),
            provider_profile=RegisteredProviderProfile.model_validate(profile),
            access_token=issue_access_token(user["id"], user["role"]),
        )

    async def login(self, email: str, password: str) -> AuthResponse:
        """
        Authenticate with e-mail and password.

        Raises:
            UnauthorizedException: If the e-mail is unknown or the password is wrong
        """
        result = await self.db.execute(
            select(*USER_COLUMNS, users.c.password_hash)
            .where(users.c.email == normalize_email(email))
            .limit(1)
        )
        row = result.mappings().first()

        if not row or not verify_password(password, row["password_hash"]):
            logger.info("login_failed")
            raise UnauthorizedException("Invalid credentials")

        logger.info("user_logged_in", user_id=str(row["id"]))

        return AuthResponse(
            user=UserResponse.model_validate(dict(row)),
            access_token=issue_access_token(row["id"], row["role"]),
        )

    async def me(self, user_id: UUID) -> MeResponse:
        """Current account, plus the provider profile for providers."""
        result = await self.db.execute(
            select(*USER_COLUMNS, users.c.phone, users.c.created_at).where(users.c.id == user_id)
        )
        user = result.mappings().first()
        if not user:
            raise NotFoundException("User not found")

        provider_profile = None
        if user["role"] == UserRole.PROVIDER.value:
            result = await self.db.execute(
                select(provider_profiles).where(provider_profiles.c.user_id == user_id)
            )
            profile = result.mappings().first()
            if profile:
                provider_profile = ProviderProfileResponse.model_validate(dict(profile))

        return MeResponse(
            user=UserDetailResponse.model_validate(dict(user)),
            provider_profile=provider_profile,
        )

    async def change_password(
        self, user_id: UUID, current_password: str, new_password: str
    ) -> None:
        """
        Replace the password of a signed-in user.

        Raises:
            NotFoundException: If the account no longer exists
            UnauthorizedException: If the current password is wrong
        """
        result = await self.db.execute(
            select(users.c.password_hash).where(users.c.id == user_id).limit(1)
        )
        password_hash = result.scalar_one_or_none()
        if password_hash is None:
            raise NotFoundException("User not found")

        if not verify_password(current_password, password_hash):
            raise UnauthorizedException("Current password is incorrect")

        async with transaction(self.db):
            await self.db.execute(
                update(users)
                .where(users.c.id == user_id)
                .values(password_hash=get_password_hash(new_password), updated_at=func.now())
            )

        logger.info("password_changed", user_id=str(user_id))

    async def forgot_password(self, email: str) -> ForgotPasswordResponse:
        """
        Start a password reset.

        The response is the same whether or not the account exists. Only the
        SHA-256 digest of the token is stored.

        Args:
            email: Account e-mail

        Returns:
            Acknowledgement; carries the raw token only when exposure is enabled
        """
        email_norm = normalize_email(email)
        result = await self.db.execute(
            select(users.c.id).where(users.c.email == email_norm).limit(1)
        )
        user_id = result.scalar_one_or_none()
        if user_id is None:
            return ForgotPasswordResponse()

        raw_token = generate_reset_token()
        expires_at = datetime.now(UTC) + timedelta(minutes=settings.password_reset_expire_minutes)

        async with transaction(self.db):
            await self.db.execute(
                insert(password_reset_tokens).values(
                    user_id=user_id,
                    token_hash=hash_reset_token(raw_token),
                    expires_at=expires_at,
                )
            )

        logger.info("password_reset_requested", user_id=str(user_id))
        await send_password_reset_email(email_norm, build_reset_link(raw_token))

        if settings.expose_reset_token:
            return ForgotPasswordResponse(token=raw_token)
        return ForgotPasswordResponse()

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Redeem a reset token and set a new password.

        The token row is locked for the duration of the transaction so two
        concurrent redemptions cannot both succeed.

        Raises:
            BadRequestException: If the token is unknown, expired or already used
        """
        async with transaction(self.db):
            result = await self.db.execute(
                select(
                    password_reset_tokens.c.id,
                    password_reset_tokens.c.user_id,
                    password_reset_tokens.c.expires_at,
                    password_reset_tokens.c.used_at,
                )
                .where(password_reset_tokens.c.token_hash == hash_reset_token(token))
                .order_by(password_reset_tokens.c.created_at.desc())
                .limit(1)
                .with_for_update()
            )
            row = result.mappings().first()

            if not row:
                raise BadRequestException("Invalid or expired token")
            if row["used_at"] is not None:
                raise BadRequestException("Token already used")
            if row["expires_at"] < datetime.now(UTC):
                raise BadRequestException("Invalid or expired token")

            await self.db.execute(
                update(users)
                .where(users.c.id == row["user_id"])
                .values(password_hash=get_password_hash(new_password), updated_at=func.now())
            )
            await self.db.execute(
                update(password_reset_tokens)
                .where(password_reset_tokens.c.id == row["id"])
                .values(used_at=func.now())
            )

        logger.info("password_reset_completed", user_id=str(row["user_id"]))
