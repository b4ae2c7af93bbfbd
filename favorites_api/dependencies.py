"""FastAPI dependencies resolving request-scoped resources from the app context."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from favorites_api.context import AppContext
from favorites_api.errors import MalformedRequestError
from favorites_api.schemas.envelope import FieldError

INVALID_JSON_MESSAGE = "Invalid JSON format"
INVALID_JSON_DETAIL = "Request body contains invalid JSON syntax"


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_db(context: AppContext = Depends(get_context)) -> AsyncIterator[AsyncSession]:
    """
    Dependency to provide database session.

    Yields async session and ensures proper cleanup even on errors.
    """
    async with context.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def read_json_body(request: Request) -> Any | None:
    """Decode the request body; ``None`` when the body is absent or blank."""

    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedRequestError(
            INVALID_JSON_MESSAGE,
            errors=[FieldError(field="body", message=INVALID_JSON_DETAIL)],
        ) from exc


__all__ = ["get_context", "get_db", "read_json_body"]
