"""Page/limit arithmetic shared by list endpoints."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Pagination:
    """Resolved page window."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def paginate(page: int | None, limit: int | None, default_limit: int, max_limit: int) -> Pagination:
    """
    Clamp raw query values into a usable page window.

    Out-of-range values are pulled back into range rather than rejected:
    page is at least 1 and limit lies within ``[1, max_limit]``.

    Args:
        page: Requested page number, 1-based
        limit: Requested page size
        default_limit: Page size used when none is given
        max_limit: Largest page size served

    Returns:
        Pagination window
    """
    resolved_page = max(1, page if page is not None else 1)
    resolved_limit = limit if limit is not None else default_limit
    resolved_limit = min(max(1, resolved_limit), max_limit)
    return Pagination(page=resolved_page, limit=resolved_limit)
