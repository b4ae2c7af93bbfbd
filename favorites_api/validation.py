"""Validation layer turning raw request input into typed, normalised models.

Each ``validate_*`` function accepts untrusted input (a decoded JSON body, query
parameters or path parameters) and returns a :class:`ValidationResult`.  Every
field is checked in one pass so the client receives all problems at once;
unknown keys are dropped rather than rejected.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from favorites_api.schemas.entries import (
    AT_LEAST_ONE_FIELD_MESSAGE,
    EntryCreate,
    EntryIdParams,
    EntryUpdate,
    PaginationParams,
    SearchParams,
)
from favorites_api.schemas.envelope import FieldError

ModelT = TypeVar("ModelT", bound=BaseModel)

BODY_FIELD = "body"
NOT_AN_OBJECT_MESSAGE = "Request body must be a valid object"

# pydantic error types grouped into the handful of rules clients care about.
_ERROR_KINDS: dict[str, str] = {
    "missing": "required",
    "string_too_short": "empty",
    "string_too_long": "too_long",
    "string_type": "not_string",
    "enum": "choice",
    "int_parsing": "not_number",
    "int_type": "not_number",
    "int_from_float": "whole",
    "greater_than_equal": "min",
    "greater_than": "min",
    "less_than_equal": "max",
}

_FIELD_MESSAGES: dict[str, dict[str, str]] = {
    "title": {
        "required": "Title is required",
        "empty": "Title cannot be empty",
        "too_long": "Title cannot exceed 255 characters",
        "not_string": "Title must be a string",
    },
    "type": {
        "required": "Type is required",
        "choice": "Type must be either 'Movie' or 'TV Show'",
    },
    "director": {
        "required": "Director is required",
        "empty": "Director name cannot be empty",
        "too_long": "Director name cannot exceed 255 characters",
        "not_string": "Director name must be a string",
    },
    "budget": {
        "required": "Budget is required",
        "not_number": "Budget must be a number",
        "whole": "Budget must be a whole number",
        "min": "Budget cannot be negative",
        "max": "Budget value is too large",
    },
    "location": {
        "required": "Location is required",
        "empty": "Location cannot be empty",
        "too_long": "Location cannot exceed 255 characters",
        "not_string": "Location must be a string",
    },
    "duration": {
        "required": "Duration is required",
        "empty": "Duration cannot be empty",
        "too_long": "Duration cannot exceed 100 characters",
        "not_string": "Duration must be a string",
    },
    "year": {
        "required": "Year is required",
        "not_number": "Year must be a number",
        "whole": "Year must be a whole number",
        "min": "Year must be after 1800",
    },
    "page": {
        "not_number": "Page must be a whole number",
        "whole": "Page must be a whole number",
        "min": "Page must be at least 1",
    },
    "limit": {
        "not_number": "Limit must be a whole number",
        "whole": "Limit must be a whole number",
        "min": "Limit must be at least 1",
        "max": "Limit cannot exceed 100",
    },
    "q": {
        "required": "Search query is required",
        "empty": "Search query cannot be empty",
        "too_long": "Search query cannot exceed 255 characters",
        "not_string": "Search query must be a string",
    },
    "id": {
        "required": "ID is required",
        "not_number": "ID must be a whole number",
        "whole": "ID must be a whole number",
        "min": "ID must be a positive number",
    },
}


@dataclass
class ValidationResult(Generic[ModelT]):
    """Outcome of a validator: either ``data`` or a non-empty ``errors`` list."""

    success: bool
    data: ModelT | None = None
    errors: list[FieldError] = field(default_factory=list)

    @classmethod
    def ok(cls, data: ModelT) -> ValidationResult[ModelT]:
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, errors: list[FieldError]) -> ValidationResult[ModelT]:
        return cls(success=False, errors=errors)


def _field_name(loc: tuple[Any, ...]) -> str:
    if not loc:
        return BODY_FIELD
    return ".".join(str(part) for part in loc)


def _message_for(field_name: str, error: Mapping[str, Any]) -> str:
    kind = _ERROR_KINDS.get(error["type"])
    if kind is not None:
        message = _FIELD_MESSAGES.get(field_name, {}).get(kind)
        if message is not None:
            return message
    return error["msg"]


def collect_errors(exc: ValidationError) -> list[FieldError]:
    """Flatten a pydantic ``ValidationError`` into client-facing field errors."""

    errors: list[FieldError] = []
    for error in exc.errors():
        name = _field_name(tuple(error.get("loc", ())))
        errors.append(FieldError(field=name, message=_message_for(name, error)))
    return errors


def _validate(model: type[ModelT], data: Mapping[str, Any]) -> ValidationResult[ModelT]:
    try:
        return ValidationResult.ok(model.model_validate(dict(data)))
    except ValidationError as exc:
        return ValidationResult.failed(collect_errors(exc))


def _not_an_object() -> ValidationResult[Any]:
    return ValidationResult.failed(
        [FieldError(field=BODY_FIELD, message=NOT_AN_OBJECT_MESSAGE)]
    )


def validate_create_entry(data: Any) -> ValidationResult[EntryCreate]:
    """Validate a create payload; all seven business fields are required."""

    if not isinstance(data, Mapping):
        return _not_an_object()
    return _validate(EntryCreate, data)


def validate_update_entry(data: Any) -> ValidationResult[EntryUpdate]:
    """Validate a partial update; at least one field must carry a value."""

    if not isinstance(data, Mapping):
        return _not_an_object()
    result = _validate(EntryUpdate, data)
    if result.success or EntryUpdate.supplies_value(data):
        return result

    # Field errors short-circuit the model-level rule, so report it here too.
    if not any(error.message == AT_LEAST_ONE_FIELD_MESSAGE for error in result.errors):
        result.errors.append(
            FieldError(field=BODY_FIELD, message=AT_LEAST_ONE_FIELD_MESSAGE)
        )
    return result


def validate_pagination(query: Mapping[str, Any]) -> ValidationResult[PaginationParams]:
    return _validate(PaginationParams, query)


def validate_search(query: Mapping[str, Any]) -> ValidationResult[SearchParams]:
    return _validate(SearchParams, query)


def validate_id(params: Mapping[str, Any]) -> ValidationResult[EntryIdParams]:
    return _validate(EntryIdParams, params)


__all__ = [
    "ValidationResult",
    "collect_errors",
    "validate_create_entry",
    "validate_id",
    "validate_pagination",
    "validate_search",
    "validate_update_entry",
]
