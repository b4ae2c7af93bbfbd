"""Exceptions translated into enveloped HTTP responses by ``favorites_api.main``."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from fastapi import status

from favorites_api.schemas.envelope import FieldError

__all__ = [
    "ApiError",
    "DuplicateEntryError",
    "EntryNotFoundError",
    "MalformedRequestError",
    "RateLimitExceededError",
    "ValidationFailedError",
]


class ApiError(Exception):
    """Base class for failures that map onto a client-facing status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        errors: Sequence[FieldError] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors) if errors is not None else None
        self.headers = dict(headers) if headers else None


class MalformedRequestError(ApiError):
    """Body missing, empty, or not parseable JSON."""

    status_code = status.HTTP_400_BAD_REQUEST


class ValidationFailedError(ApiError):
    """One or more fields failed validation; ``errors`` lists all of them."""

    status_code = status.HTTP_400_BAD_REQUEST


class EntryNotFoundError(ApiError, LookupError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Entry not found") -> None:
        super().__init__(message)


class DuplicateEntryError(ApiError, ValueError):
    status_code = status.HTTP_409_CONFLICT


class RateLimitExceededError(ApiError):
    """Client exhausted the request budget of a rate class."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(
        self,
        message: str,
        *,
        retry_after: str,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, headers=headers)
        self.retry_after = retry_after
