"""Pydantic schemas for API requests and responses."""

from favorites_api.schemas.entries import (  # noqa: F401
    EntryCreate,
    EntryIdParams,
    EntryListPayload,
    EntryPayload,
    EntryRead,
    EntrySearchPayload,
    EntryStats,
    EntryStatsPayload,
    EntryType,
    EntryUpdate,
    HealthStatus,
    PaginationMeta,
    PaginationParams,
    SearchParams,
)
from favorites_api.schemas.envelope import ApiResponse, FieldError  # noqa: F401
