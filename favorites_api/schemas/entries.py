"""Pydantic schemas that power the favorite entries API surface."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from favorites_api.utils.timefmt import format_display_timestamp, utcnow

MIN_YEAR = 1800
FUTURE_YEAR_ALLOWANCE = 10
MAX_BUDGET = 999_999_999_999
TEXT_MAX_LENGTH = 255
DURATION_MAX_LENGTH = 100
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10
AT_LEAST_ONE_FIELD_MESSAGE = "At least one field must be provided for update"


class EntryType(str, Enum):
    """Kinds of catalogue entries."""

    MOVIE = "Movie"
    TV_SHOW = "TV Show"


def max_allowed_year() -> int:
    """Latest release year accepted, evaluated at validation time."""

    return utcnow().year + FUTURE_YEAR_ALLOWANCE


def _check_year_upper_bound(value: int | None) -> int | None:
    if value is not None and value > max_allowed_year():
        raise PydanticCustomError(
            "year_too_late",
            "Year cannot be more than 10 years in the future",
        )
    return value


_INPUT_CONFIG = ConfigDict(str_strip_whitespace=True, extra="ignore")


class EntryCreate(BaseModel):
    """Payload for inserting a new entry; every business field is required."""

    model_config = _INPUT_CONFIG

    title: str = Field(..., min_length=1, max_length=TEXT_MAX_LENGTH)
    type: EntryType
    director: str = Field(..., min_length=1, max_length=TEXT_MAX_LENGTH)
    budget: int = Field(..., ge=0, le=MAX_BUDGET)
    location: str = Field(..., min_length=1, max_length=TEXT_MAX_LENGTH)
    duration: str = Field(..., min_length=1, max_length=DURATION_MAX_LENGTH)
    year: int = Field(..., ge=MIN_YEAR)

    @field_validator("year")
    @classmethod
    def _year_upper_bound(cls, value: int | None) -> int | None:
        return _check_year_upper_bound(value)


class EntryUpdate(BaseModel):
    """Partial update payload; at least one field must carry a value."""

    model_config = _INPUT_CONFIG

    title: str | None = Field(None, min_length=1, max_length=TEXT_MAX_LENGTH)
    type: EntryType | None = None
    director: str | None = Field(None, min_length=1, max_length=TEXT_MAX_LENGTH)
    budget: int | None = Field(None, ge=0, le=MAX_BUDGET)
    location: str | None = Field(None, min_length=1, max_length=TEXT_MAX_LENGTH)
    duration: str | None = Field(None, min_length=1, max_length=DURATION_MAX_LENGTH)
    year: int | None = Field(None, ge=MIN_YEAR)

    @field_validator("year")
    @classmethod
    def _year_upper_bound(cls, value: int | None) -> int | None:
        return _check_year_upper_bound(value)

    @model_validator(mode="after")
    def _require_one_field(self) -> EntryUpdate:
        if not self.changes():
            raise PydanticCustomError("at_least_one_field", AT_LEAST_ONE_FIELD_MESSAGE)
        return self

    @classmethod
    def supplies_value(cls, data: Mapping[str, Any]) -> bool:
        """Whether any known field holds a value that is not blank after trimming."""

        for name in cls.model_fields:
            value = data.get(name)
            if isinstance(value, str):
                value = value.strip()
            if value is not None and value != "":
                return True
        return False

    def changes(self) -> dict[str, object]:
        """Return only the columns the caller actually supplied."""

        return self.model_dump(exclude_none=True)


class PaginationParams(BaseModel):
    """``page``/``limit`` query parameters with their defaults."""

    model_config = _INPUT_CONFIG

    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class SearchParams(PaginationParams):
    """Title search query plus the pagination window."""

    q: str = Field(..., min_length=1, max_length=TEXT_MAX_LENGTH)


class EntryIdParams(BaseModel):
    """Path parameter identifying a single entry."""

    model_config = _INPUT_CONFIG

    id: int = Field(..., gt=0)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class EntryRead(_CamelModel):
    """Read model exposed in API responses with display-formatted timestamps."""

    id: int
    title: str
    type: EntryType
    director: str
    budget: int
    location: str
    duration: str
    year: int
    created_at: str
    updated_at: str

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _format_timestamp(cls, value: object) -> object:
        if isinstance(value, datetime):
            return format_display_timestamp(value)
        return value


class PaginationMeta(_CamelModel):
    """Page bookkeeping returned next to every listing."""

    current_page: int
    total_pages: int
    total_entries: int
    has_next_page: bool
    has_prev_page: bool
    limit: int


class EntryPayload(_CamelModel):
    entry: EntryRead


class EntryListPayload(_CamelModel):
    entries: list[EntryRead]
    pagination: PaginationMeta


class EntrySearchPayload(EntryListPayload):
    search_query: str


class EntryStats(_CamelModel):
    """Aggregate figures for the whole catalogue."""

    total_entries: int = Field(..., ge=0)
    movies_count: int = Field(..., ge=0)
    tv_shows_count: int = Field(..., ge=0)
    recent_entries: int = Field(..., ge=0)
    avg_budget: int = Field(..., ge=0)
    generated_at: str


class EntryStatsPayload(_CamelModel):
    stats: EntryStats


class HealthStatus(BaseModel):
    """Body of ``GET /health``."""

    success: bool = True
    message: str = "Server is running"
    timestamp: str
    environment: str
    version: str
