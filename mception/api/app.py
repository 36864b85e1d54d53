"""FastAPI application factory.

Creates the application around a ConfigService, registers the exception
handlers that turn service errors into ``{"error": {...}}`` bodies, and
registers the routes.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mception import __version__
from mception.api.exceptions import MceptionAPIError, status_for
from mception.api.models.errors import ErrorBody, ErrorCode, ErrorResponse
from mception.api.routes import register_routes
from mception.config import get_settings
from mception.config.settings import Settings
from mception.errors import MceptionError
from mception.observability.logging import get_logger
from mception.registry.factory import open_config_service
from mception.registry.service import ConfigService

logger = get_logger(__name__)


def create_app(
    service: ConfigService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Configuration service to serve. It must already be loaded.
            When omitted, one is built from ``settings`` and loaded on startup.
        settings: Application settings; defaults to ``get_settings()``

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.config_service is None:
            app.state.config_service = await open_config_service(settings)
            logger.info("config_service_opened_on_startup")
        yield

    app = FastAPI(
        title="MCePtion Server",
        description="Configuration and audit service for MCP leaves and agents",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.config_service = service

    _register_exception_handlers(app)
    register_routes(app)

    logger.info("app_created", debug=settings.debug)
    return app


def _error_response(status_code: int, code: ErrorCode, message: str) -> JSONResponse:
    response = ErrorResponse(error=ErrorBody(code=code, message=message))
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


def _register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(MceptionAPIError)
    async def api_error_handler(request: Request, exc: MceptionAPIError) -> JSONResponse:
        """Handle errors raised by the HTTP layer."""
        logger.warning(
            "api_error",
            error_code=exc.error_code.value,
            message=exc.message,
            path=request.url.path,
        )
        return _error_response(exc.status_code, exc.error_code, exc.message)

    @app.exception_handler(MceptionError)
    async def service_error_handler(request: Request, exc: MceptionError) -> JSONResponse:
        """Handle errors raised by the configuration service."""
        status_code, code = status_for(exc)
        log = logger.warning if status_code < 500 else logger.error
        log(
            "service_error",
            error_type=type(exc).__name__,
            message=str(exc),
            path=request.url.path,
        )
        return _error_response(status_code, code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle FastAPI request validation errors."""
        logger.warning("validation_error", errors=exc.errors(), path=request.url.path)

        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return _error_response(
            400, ErrorCode.INVALID_REQUEST, f"Request validation failed: {problems}"
        )
