"""User roles and the capabilities each one grants."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class UserRole(str, Enum):
    """Account role, fixed at registration."""

    GUEST = "GUEST"
    PROVIDER = "PROVIDER"
    ADMIN = "ADMIN"

    @property
    def can_start_chat(self) -> bool:
        """Only clients originate contact; providers reply."""
        return self is UserRole.GUEST

    @property
    def can_manage_profile(self) -> bool:
        return self is UserRole.PROVIDER

    @property
    def can_publish_feed(self) -> bool:
        return self is UserRole.PROVIDER

    @property
    def can_submit_blacklist(self) -> bool:
        return self is UserRole.PROVIDER

    @property
    def can_moderate(self) -> bool:
        return self is UserRole.ADMIN


@dataclass(frozen=True)
class Identity:
    """Authenticated caller resolved from a bearer token."""

    id: UUID
    role: UserRole
