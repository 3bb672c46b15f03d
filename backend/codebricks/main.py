"""
CodeBricks AI - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import auth_router, catalog_router, chat_router, flows_router, snippets_router
from .config import Settings
from .core.errors import CodeBricksError, InputValidationError
from .core.logging_config import setup_logging
from .flows.base import format_validation_errors
from .llm.factory import build_llm_providers
from .middleware import RequestLoggingMiddleware
from .services import TranscriptionService
from .storage import LocalStorage, SnippetStore, UserStorage

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


async def codebricks_error_handler(request: Request, exc: CodeBricksError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning(
            f"{exc.title}: {exc.description}",
            extra={"extra_fields": {"path": request.url.path, "error": exc.code}}
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = InputValidationError(format_validation_errors(exc))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application around one settings object.

    Storage, providers and the transcription service hang off ``app.state``
    and are reached by request handlers through dependencies.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        setup_logging(settings)

        configured = [name for name, provider in app.state.llm_providers.items() if provider]
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Storage path: {settings.local_storage_path}")
        logger.info(f"Default model: {settings.llm_provider}")
        logger.info(f"Configured models: {', '.join(configured) or 'none'}")
        logger.info(f"Log level: {settings.log_level.upper()}")
        logger.info(f"Debug mode: {settings.debug}")
        yield
        logger.info(f"Shutting down {settings.app_name}")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="AI coding assistant: generate, explain, fix, optimize and test code",
        lifespan=lifespan
    )

    storage = LocalStorage(settings.local_storage_path)
    app.state.settings = settings
    app.state.storage = storage
    app.state.user_storage = UserStorage(storage)
    app.state.snippet_store = SnippetStore(storage)
    app.state.llm_providers = build_llm_providers(settings)
    app.state.transcription = TranscriptionService(settings.openai_api_key)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add request logging middleware (after CORS)
    if settings.log_api_requests:
        app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(CodeBricksError, codebricks_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Include routers
    app.include_router(auth_router)
    app.include_router(catalog_router)
    app.include_router(flows_router)
    app.include_router(chat_router)
    app.include_router(snippets_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "app": settings.app_name,
            "version": settings.app_version,
            "status": "running",
            "message": "Welcome to CodeBricks AI - Your AI Coding Assistant"
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "storage": settings.storage_type,
            "version": settings.app_version
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "codebricks.main:app",
        host="0.0.0.0",
        port=8000,
        reload=app.state.settings.debug
    )
