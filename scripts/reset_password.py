"""Script to set a known password for an account, optionally changing its role."""

import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv
from sqlalchemy import func, update

from app.core.roles import UserRole
from app.core.security import get_password_hash
from app.database import AsyncSessionLocal, engine, transaction
from app.models.users import users
from app.services.auth_service import normalize_email

MIN_PASSWORD_LENGTH = 6


async def reset_password(email: str, password: str, role: UserRole | None = None) -> bool:
    """
    Overwrite an account's password hash.

    Args:
        email: Account e-mail, normalized before lookup
        password: New plain-text password
        role: Role to assign, if any

    Returns:
        True if an account was updated
    """
    values = {"password_hash": get_password_hash(password), "updated_at": func.now()}
    if role is not None:
        values["role"] = role.value

    async with AsyncSessionLocal() as db, transaction(db):
        result = await db.execute(
            update(users)
            .where(users.c.email == normalize_email(email))
            .values(**values)
            .returning(users.c.id, users.c.email, users.c.role)
        )
        row = result.mappings().first()

    await engine.dispose()

    if row is None:
        print(f"No user found with email: {email}")
        return False

    print(f"✓ Password updated for {row['email']} ({row['role']}, id={row['id']})")
    return True


def main() -> int:
    """Parse arguments and run the reset."""
    load_dotenv()

    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email")
    parser.add_argument(
        "password",
        nargs="?",
        help="New password; defaults to the RESET_ADMIN_PASSWORD environment variable",
    )
    parser.add_argument("--role", choices=[role.value for role in UserRole])
    args = parser.parse_args()

    password = (args.password or os.getenv("RESET_ADMIN_PASSWORD") or "").strip()
    if len(password) < MIN_PASSWORD_LENGTH:
        print(
            f"✗ Provide a new password (min {MIN_PASSWORD_LENGTH} chars) as second argument "
            "or RESET_ADMIN_PASSWORD env.",
            file=sys.stderr,
        )
        return 1

    role = UserRole(args.role) if args.role else None
    updated = asyncio.run(reset_password(args.email, password, role))
    return 0 if updated else 1


if __name__ == "__main__":
    sys.exit(main())
