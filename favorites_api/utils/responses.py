"""Helper functions for constructing enveloped API responses.

Keeping response construction in one module avoids duplicated boilerplate in the
routers and exception handlers, and guarantees that every body shares the same
``success``/``message``/``data``/``errors`` shape.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from favorites_api.schemas.envelope import ApiResponse, FieldError

__all__ = [
    "build_envelope",
    "error_response",
    "success_response",
]


def build_envelope(
    *,
    success: bool,
    message: str,
    data: Any | None = None,
    errors: Sequence[FieldError] | None = None,
    retry_after: str | None = None,
) -> ApiResponse:
    """Construct an :class:`ApiResponse`, flattening model payloads to camelCase JSON."""

    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    return ApiResponse(
        success=success,
        message=message,
        data=data,
        errors=list(errors) if errors is not None else None,
        retry_after=retry_after,
    )


def success_response(
    message: str,
    data: Any | None = None,
    *,
    status_code: int = status.HTTP_200_OK,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    envelope = build_envelope(success=True, message=message, data=data)
    return JSONResponse(
        status_code=status_code,
        content=envelope.to_payload(),
        headers=dict(headers) if headers else None,
    )


def error_response(
    message: str,
    *,
    status_code: int,
    errors: Sequence[FieldError] | None = None,
    headers: Mapping[str, str] | None = None,
    retry_after: str | None = None,
) -> JSONResponse:
    envelope = build_envelope(
        success=False,
        message=message,
        errors=errors,
        retry_after=retry_after,
    )
    return JSONResponse(
        status_code=status_code,
        content=envelope.to_payload(),
        headers=dict(headers) if headers else None,
    )
