"""FastAPI application entry point."""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from orderflow import __version__
from orderflow.api.routes import router
from orderflow.config import get_settings
from orderflow.errors import InternalError, OrderflowError, ValidationError
from orderflow.state import build_store
from orderflow.state.store import OrderStore
from orderflow.utils.logging import OrderAuditLogger, get_logger, setup_logging

# Setup logging first
setup_logging()
logger = get_logger(__name__)
audit = OrderAuditLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    logger.info("application_starting", store=type(app.state.store).__name__)

    await app.state.store.connect()
    logger.info("store_connected")

    yield

    # Shutdown
    logger.info("application_shutting_down")
    await app.state.store.disconnect()


async def handle_domain_error(request: Request, exc: OrderflowError) -> JSONResponse:
    """Render a domain error as the error envelope."""
    audit.log_error(exc.message, exc.kind, status=exc.status_code, path=request.url.path)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed requests with the same envelope as domain validation errors."""
    problems = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    error = ValidationError("; ".join(problems) or "Invalid request")
    return await handle_domain_error(request, error)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    error = InternalError("Internal server error")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Bind a request id into the log context and log every request."""
    request_id = request.headers.get("X-Request-ID") or uuid4().hex
    request.state.request_id = request_id

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start) * 1000, 2)

    logger.info("request_completed", status_code=response.status_code, duration_ms=duration_ms)
    response.headers["X-Request-ID"] = request_id
    return response


def create_app(store: OrderStore | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        store: Record store to serve from; defaults to the configured backend

    Returns:
        Configured application
    """
    settings = get_settings()

    app = FastAPI(
        title="Orderflow",
        description="Order lifecycle and courier assignment service for food delivery",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.store = store or build_store()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.environment == "development" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(OrderflowError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "orderflow",
            "store": type(app.state.store).__name__,
        }

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Orderflow API",
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "orderflow.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )
