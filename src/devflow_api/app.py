from __future__ import annotations

from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from devflow_api.api import include_api_routes
from devflow_api.api.responses import envelope_response
from devflow_api.config.settings import Settings, get_settings
from devflow_api.core.errors import INTERNAL_ERROR_MESSAGE
from devflow_api.core.logging import configure_logging, get_logger
from devflow_api.db.session import lifespan_context
from devflow_api.domain.schemas.common import ErrorBody, ErrorResponse, FieldErrors

logger = get_logger(__name__)


@asynccontextmanager
async def _lifespan(_: FastAPI):
    async with lifespan_context():
        yield


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _failure(status_code: int, message: str, details: FieldErrors | None = None) -> JSONResponse:
    return envelope_response(
        ErrorResponse(error=ErrorBody(message=message, details=details), status_code=status_code)
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API with logging, CORS and envelope-shaped error handlers."""

    settings = settings or get_settings()
    configure_logging(settings)

    if settings.is_production and (not settings.cors_origins or "*" in settings.cors_origins):
        raise RuntimeError("Production deployments must configure explicit CORS origins.")

    app = FastAPI(
        title=settings.app_name,
        version=settings.api_version,
        lifespan=_lifespan,
    )

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    include_api_routes(app)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else _status_phrase(exc.status_code)
        return _failure(exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details: FieldErrors = {}
        for error in exc.errors():
            location = [str(part) for part in error.get("loc", ()) if part != "body"]
            field = location[0] if location else "body"
            details.setdefault(field, []).append(str(error.get("msg", "Invalid value")))
        return _failure(422, "Request validation failed", details)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:  # pragma: no cover
        logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
        return _failure(500, INTERNAL_ERROR_MESSAGE)

    return app


app = create_app()


__all__ = ["app", "create_app"]
