"""FastAPI router exposing CRUD, search and stats operations for catalog entries.

Handlers accept raw path, query and body input and run it through
:mod:`favorites_api.validation` so every field error is reported in one
response using the catalog's own messages.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from favorites_api.dependencies import read_json_body
from favorites_api.errors import MalformedRequestError, ValidationFailedError
from favorites_api.rate_limit import GENERAL, SEARCH, WRITE, rate_limit
from favorites_api.schemas.entries import EntryPayload, EntryStatsPayload
from favorites_api.schemas.envelope import FieldError
from favorites_api.services.entry_service import EntryService, get_entry_service
from favorites_api.utils.request_context import get_request_id
from favorites_api.utils.responses import success_response
from favorites_api.validation import (
    ValidationResult,
    validate_create_entry,
    validate_id,
    validate_pagination,
    validate_search,
    validate_update_entry,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(rate_limit(GENERAL))])

EMPTY_BODY_MESSAGE = "Request body is empty. Please provide all required fields."
EMPTY_BODY_DETAIL = "Request body cannot be empty"

# Generic 500 detail keyed by endpoint name; read by the app's fallback handler.
FAILURE_MESSAGES: dict[str, str] = {
    "create_entry": "Failed to create entry",
    "list_entries": "Failed to retrieve entries",
    "search_entries": "Failed to search entries",
    "get_entry_stats": "Failed to retrieve statistics",
    "get_entry": "Failed to retrieve entry",
    "update_entry": "Failed to update entry",
    "delete_entry": "Failed to delete entry",
}


def _require_valid(result: ValidationResult[Any], message: str) -> Any:
    if not result.success:
        logger.warning(
            "%s [request_id=%s]: %s",
            message,
            get_request_id(),
            "; ".join(f"{error.field}: {error.message}" for error in result.errors),
        )
        raise ValidationFailedError(message, errors=result.errors)
    return result.data


def _entry_id(entry_id: str) -> int:
    params = _require_valid(validate_id({"id": entry_id}), "Invalid ID parameter")
    return params.id


@router.post(
    "/entries",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(WRITE))],
)
async def create_entry(
    body: Any = Depends(read_json_body),
    service: EntryService = Depends(get_entry_service),
) -> JSONResponse:
    """Validate and insert a new entry."""

    if body is None or body == {}:
        raise MalformedRequestError(
            EMPTY_BODY_MESSAGE,
            errors=[FieldError(field="body", message=EMPTY_BODY_DETAIL)],
        )

    payload = _require_valid(
        validate_create_entry(body),
        "Validation failed. Please provide all required fields.",
    )
    entry = await service.create_entry(payload)
    return success_response(
        "Entry created successfully",
        EntryPayload(entry=entry),
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/entries")
async def list_entries(
    request: Request,
    service: EntryService = Depends(get_entry_service),
) -> JSONResponse:
    """Newest entries first, one page at a time."""

    params = _require_valid(
        validate_pagination(dict(request.query_params)), "Invalid query parameters"
    )
    payload = await service.list_entries(params)
    return success_response("Entries retrieved successfully", payload)


@router.get("/entries/search", dependencies=[Depends(rate_limit(SEARCH))])
async def search_entries(
    request: Request,
    service: EntryService = Depends(get_entry_service),
) -> JSONResponse:
    """Title substring search ordered alphabetically."""

    params = _require_valid(
        validate_search(dict(request.query_params)), "Invalid search parameters"
    )
    payload = await service.search_entries(params)
    return success_response("Search completed successfully", payload)


@router.get("/entries/stats")
async def get_entry_stats(
    service: EntryService = Depends(get_entry_service),
) -> JSONResponse:
    stats = await service.get_stats()
    return success_response(
        "Statistics retrieved successfully", EntryStatsPayload(stats=stats)
    )


@router.get("/entries/{entry_id}")
async def get_entry(
    entry_id: str,
    service: EntryService = Depends(get_entry_service),
) -> JSONResponse:
    entry = await service.get_entry(_entry_id(entry_id))
    return success_response("Entry retrieved successfully", EntryPayload(entry=entry))


@router.put("/entries/{entry_id}", dependencies=[Depends(rate_limit(WRITE))])
async def update_entry(
    entry_id: str,
    body: Any = Depends(read_json_body),
    service: EntryService = Depends(get_entry_service),
) -> JSONResponse:
    """Apply a partial update; omitted fields keep their stored values."""

    resolved_id = _entry_id(entry_id)
    payload = _require_valid(
        validate_update_entry({} if body is None else body),
        "Validation failed. Please provide valid field values.",
    )
    entry = await service.update_entry(resolved_id, payload)
    return success_response("Entry updated successfully", EntryPayload(entry=entry))


@router.delete("/entries/{entry_id}", dependencies=[Depends(rate_limit(WRITE))])
async def delete_entry(
    entry_id: str,
    service: EntryService = Depends(get_entry_service),
) -> JSONResponse:
    await service.delete_entry(_entry_id(entry_id))
    return success_response("Entry deleted successfully")


__all__ = ["FAILURE_MESSAGES", "router"]
