"""Page bookkeeping shared by the list and search endpoints."""

from __future__ import annotations

import math

from favorites_api.schemas.entries import PaginationMeta


def build_pagination(*, page: int, limit: int, total: int) -> PaginationMeta:
    """Return the metadata block for ``page`` of ``total`` rows at ``limit`` per page.

    ``page`` is never clamped: asking beyond the last page yields an empty entry
    list with ``hasNextPage`` false and ``hasPrevPage`` true.
    """

    total_pages = math.ceil(total / limit) if total > 0 else 0
    return PaginationMeta(
        current_page=page,
        total_pages=total_pages,
        total_entries=total,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
        limit=limit,
    )


__all__ = ["build_pagination"]
