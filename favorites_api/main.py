import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from favorites_api.api import entries
from favorites_api.bootstrap import bootstrap
from favorites_api.context import AppContext
from favorites_api.errors import ApiError, RateLimitExceededError
from favorites_api.rate_limit import rate_limit_headers
from favorites_api.schemas.entries import HealthStatus
from favorites_api.schemas.envelope import FieldError
from favorites_api.services.entry_service import DUPLICATE_TITLE_AND_YEAR_MESSAGE
from favorites_api.settings import LOG_FORMAT, AppSettings, get_settings
from favorites_api.utils.request_context import (
    get_request_id,
    new_request_id,
    set_request_id,
)
from favorites_api.utils.responses import error_response
from favorites_api.utils.timefmt import format_display_timestamp, utcnow

logger = logging.getLogger(__name__)

ROUTE_NOT_FOUND_MESSAGE = "Route not found"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def configure_logging(settings: AppSettings) -> None:
    logging.basicConfig(level=settings.log_level_numeric, format=LOG_FORMAT)


def _endpoint_index(settings: AppSettings) -> dict[str, str]:
    prefix = settings.normalized_api_prefix
    return {
        f"POST {prefix}/entries": "Create a new entry",
        f"GET {prefix}/entries": "Get all entries with pagination",
        f"GET {prefix}/entries/search": "Search entries by title",
        f"GET {prefix}/entries/stats": "Get statistics",
        f"GET {prefix}/entries/:id": "Get entry by ID",
        f"PUT {prefix}/entries/:id": "Update entry by ID",
        f"DELETE {prefix}/entries/:id": "Delete entry by ID",
    }


def _failure_message(request: Request) -> str | None:
    route = request.scope.get("route")
    name = getattr(route, "name", None)
    if name is None:
        return None
    return entries.FAILURE_MESSAGES.get(name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    context: AppContext = app.state.context
    await bootstrap(context)
    logger.info("%s ready on port %s", context.settings.app_name, context.settings.port)

    yield

    logger.info("Shutting down %s", context.settings.app_name)
    await context.aclose()
    logger.info("Database connections closed")


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Build a fully wired application around its own :class:`AppContext`."""

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="REST API for a catalog of favorite movies and TV shows.",
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.context = AppContext.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Tag the request with an ID and surface rate-limit headers."""
        request_id = new_request_id()
        set_request_id(request_id)
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        for name, value in rate_limit_headers(request).items():
            response.headers[name] = value
        return response

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        """Translate domain errors into enveloped responses."""
        retry_after = exc.retry_after if isinstance(exc, RateLimitExceededError) else None
        return error_response(
            exc.message,
            status_code=exc.status_code,
            errors=exc.errors,
            headers=exc.headers,
            retry_after=retry_after,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle FastAPI request validation errors."""
        errors = [
            FieldError(
                field=".".join(str(loc) for loc in error["loc"] if loc != "body") or "body",
                message=error["msg"],
            )
            for error in exc.errors()
        ]
        logger.warning(
            "Validation error for request %s to %s: %s errors",
            get_request_id(),
            request.url.path,
            len(errors),
        )
        return error_response(
            "Validation failed",
            status_code=status.HTTP_400_BAD_REQUEST,
            errors=errors,
        )

    @app.exception_handler(IntegrityError)
    async def database_integrity_exception_handler(request: Request, exc: IntegrityError):
        """Handle database integrity constraint errors."""
        logger.error(
            "Database integrity error for request %s to %s: %s",
            get_request_id(),
            request.url.path,
            str(exc),
        )
        return error_response(
            DUPLICATE_TITLE_AND_YEAR_MESSAGE,
            status_code=status.HTTP_409_CONFLICT,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = ROUTE_NOT_FOUND_MESSAGE
        else:
            message = str(exc.detail)
        return error_response(
            message,
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all other unhandled exceptions.

        Runs outside the ``http`` middleware, so the request id header is set here.
        """
        request_id = getattr(request.state, "request_id", None) or get_request_id()
        logger.exception(
            "Unhandled exception for request %s to %s: %s",
            request_id,
            request.url.path,
            type(exc).__name__,
        )
        failure = _failure_message(request)
        return error_response(
            INTERNAL_ERROR_MESSAGE,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            errors=[FieldError(message=failure)] if failure else None,
            headers={"X-Request-ID": request_id} if request_id else None,
        )

    @app.get("/health", tags=["system"])
    async def healthcheck() -> HealthStatus:
        """Liveness probe; not rate limited."""
        return HealthStatus(
            timestamp=format_display_timestamp(utcnow()),
            environment=settings.environment,
            version=settings.app_version,
        )

    @app.get("/", tags=["system"])
    async def index() -> dict[str, object]:
        return {
            "success": True,
            "message": settings.app_name,
            "version": settings.app_version,
            "health": "/health",
            "endpoints": _endpoint_index(settings),
        }

    app.include_router(
        entries.router, prefix=settings.normalized_api_prefix, tags=["entries"]
    )
    return app


__all__ = ["configure_logging", "create_app", "lifespan"]
