"""Utilities for working with request-scoped context metadata.

The application assigns a unique identifier to every inbound HTTP call.  Tiny
helpers around the underlying ``ContextVar`` keep middleware, exception
handlers and tests in agreement about where that identifier lives.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

__all__ = [
    "REQUEST_ID_CONTEXT",
    "clear_request_id",
    "get_request_id",
    "new_request_id",
    "set_request_id",
]

REQUEST_ID_CONTEXT: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    """Return a fresh identifier suitable for the ``X-Request-ID`` header."""

    return str(uuid.uuid4())


def set_request_id(request_id: str) -> Token[str]:
    """Persist the provided request identifier in the context variable.

    The returned token lets tests restore the previous value once their
    assertions finish.
    """

    return REQUEST_ID_CONTEXT.set(request_id)


def get_request_id() -> str:
    """Retrieve the current request identifier (empty string when unset)."""

    return REQUEST_ID_CONTEXT.get()


def clear_request_id(token: Token[str] | None = None) -> None:
    """Reset the request identifier to its previous or empty value."""

    if token is not None:
        REQUEST_ID_CONTEXT.reset(token)
    else:
        REQUEST_ID_CONTEXT.set("")
