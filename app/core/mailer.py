"""Outbound e-mail.

Delivery is handled outside this service; messages are written to the
structured log so an operator or log shipper can pick them up.
"""

from urllib.parse import urlencode

import structlog

from app.config import settings

logger = structlog.get_logger()


def build_reset_link(token: str) -> str:
    """Build the frontend link that carries a raw reset token."""
    return f"{settings.password_reset_url}?{urlencode({'token': token})}"


async def send_password_reset_email(to: str, reset_link: str) -> None:
    """Hand a password reset message to the delivery pipeline."""
    logger.info("password_reset_email_queued", to=to, reset_link=reset_link)
