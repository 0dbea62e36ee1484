"""
FastAPI Application Factory.
Creates and configures the FastAPI application with all routers, middleware, and DI.

Endpoints:
- /me/handle, /conversations, /conversations/{id}/open, /conversations/{id}/messages
- /media (local blob store only)

Run with:
    uvicorn marketchat.fastapi_app:create_fastapi_app --factory --port 5001
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from dishka import AsyncContainer
from dishka.integrations.fastapi import setup_dishka

from marketchat.config.logging_config import setup_logging, correlation_id_var
from marketchat.config.settings import Config
from marketchat.domain.exceptions import (
    AccessDeniedError,
    DomainValidationError,
    EntityNotFoundError,
    IdentityResolutionError,
    LoadError,
    PayloadTooLargeError,
    SelfConversationError,
    SendFailedError,
    UnsupportedMediaTypeError,
)
from marketchat.presentation.api import (
    chat_router,
    conversations_router,
    identity_router,
)

logger = logging.getLogger(__name__)

# Domain error → HTTP status. Order matters: subclasses before their bases.
ERROR_STATUS: list[tuple[type[Exception], int]] = [
    (EntityNotFoundError, status.HTTP_404_NOT_FOUND),
    (AccessDeniedError, status.HTTP_403_FORBIDDEN),
    (SelfConversationError, status.HTTP_409_CONFLICT),
    (DomainValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (PayloadTooLargeError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    (UnsupportedMediaTypeError, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (IdentityResolutionError, status.HTTP_502_BAD_GATEWAY),
    (SendFailedError, status.HTTP_502_BAD_GATEWAY),
    (LoadError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to extract and set correlation ID from request headers."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID", "NO Correlation ID")

        # Set in contextvars (propagates to async tasks and logging)
        correlation_id_var.set(correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


def status_for(exc: Exception) -> Optional[int]:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return None


def create_fastapi_app(container: Optional[AsyncContainer] = None) -> FastAPI:
    """
    Application factory for creating FastAPI app.

    Args:
        container: DI container to use; the production container
            (Prisma, Redis, ...) is built when omitted
    """
    setup_logging(Config.LOG_LEVEL, Config.LOG_PATH)

    if container is None:
        # Imported here so the app can be built without a generated Prisma client
        from marketchat.setup.ioc.container import create_container

        container = create_container()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("FastAPI application started. DI container initialized.")
        yield
        # Closes chat sessions first, then Redis and Prisma
        await container.close()
        logger.info("FastAPI application shutdown. DI container closed.")

    app = FastAPI(
        title="Marketchat API",
        description="Messaging core for the campus marketplace",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Setup Dishka BEFORE app starts (must add middleware before startup)
    setup_dishka(container, app)

    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.info(f"[VALIDATION ERROR] {errors}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "Validation error", "details": jsonable_errors(errors)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )

    async def domain_exception_handler(request: Request, exc: Exception):
        code = status_for(exc) or status.HTTP_500_INTERNAL_SERVER_ERROR
        if code >= 500:
            logger.warning(f"[{code}] {type(exc).__name__}: {exc}")
        return JSONResponse(
            status_code=code,
            content={"error": str(exc), "type": type(exc).__name__},
        )

    for error_type, _ in ERROR_STATUS:
        app.add_exception_handler(error_type, domain_exception_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"[GLOBAL ERROR] {type(exc).__name__}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    # Health check routes
    @app.get("/", tags=["health"])
    async def root():
        return {"message": "FastAPI server is running."}

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "healthy"}

    app.include_router(identity_router)  # GET /me/handle
    app.include_router(conversations_router)  # /conversations, open/close
    app.include_router(chat_router)  # /conversations/{id}/messages

    if Config.BLOB_BACKEND == "local":
        os.makedirs(Config.UPLOAD_BASE, exist_ok=True)
        app.mount("/media", StaticFiles(directory=Config.UPLOAD_BASE), name="media")

    return app


def jsonable_errors(errors) -> list[dict]:
    """Pydantic error dicts can hold exceptions and raw bytes."""
    return [
        {key: value for key, value in error.items() if key not in ("ctx", "input")}
        for error in errors
    ]
