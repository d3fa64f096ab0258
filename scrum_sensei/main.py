import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

from dotenv import load_dotenv


# Load .env FIRST before any other imports that might need env vars
PROJECT_DIR = Path(__file__).parent.parent
ENV_PATH = PROJECT_DIR / ".env"
load_dotenv(ENV_PATH)

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import DatabaseError, IntegrityError, OperationalError
from starlette.requests import Request

from .config.logging import setup_logging
from .config.settings import get_settings
from .content.router import admin_router as content_admin_router, router as content_router
from .database.engine import engine
from .exceptions import DomainError, ResourceNotFoundError, ValidationError as CustomValidationError
from .middleware.error_handlers import (
    ErrorCategory,
    ErrorCode,
    format_error_response,
    handle_database_errors,
    handle_domain_errors,
    handle_not_found_errors,
    handle_validation_errors,
    log_error_context,
)
from .progress.router import router as progress_router
from .quizzes.router import (
    authoring_router as quiz_authoring_router,
    materials_router,
    router as quiz_router,
)


setup_logging()
logger = logging.getLogger(__name__)


def _register_routers(app: FastAPI) -> None:
    """Register all application routers."""
    app.include_router(progress_router)
    app.include_router(content_router)
    app.include_router(content_admin_router)
    app.include_router(quiz_router)
    app.include_router(quiz_authoring_router)
    app.include_router(materials_router)


async def _startup_database() -> None:
    """Initialize database with retry logic."""
    max_retries = 5
    retry_delay = 1  # seconds

    for attempt in range(max_retries):
        try:
            from scrum_sensei.database.init import init_database

            await init_database(engine)
            logger.info("Database initialization completed successfully")

            break  # Success - exit the retry loop

        except OperationalError:
            if attempt == max_retries - 1:  # Last attempt
                logger.exception("Startup failed after %d attempts", max_retries)
                raise

            logger.warning(
                "Database connection attempt %d failed, retrying in %ds...",
                attempt + 1,
                retry_delay,
            )
            await asyncio.sleep(retry_delay)
            retry_delay *= 2  # Exponential backoff


async def _shutdown_cleanup() -> None:
    """Clean up resources on shutdown."""
    logger.info("Starting graceful shutdown...")
    await engine.dispose()
    logger.info("Shutdown complete")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    await _startup_database()

    yield

    await _shutdown_cleanup()


def _register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ResourceNotFoundError, handle_not_found_errors)

    # Validation errors (400/422)
    app.add_exception_handler(RequestValidationError, handle_validation_errors)
    app.add_exception_handler(ValidationError, handle_validation_errors)
    app.add_exception_handler(CustomValidationError, handle_validation_errors)
    app.add_exception_handler(DomainError, handle_domain_errors)

    # Database errors
    app.add_exception_handler(IntegrityError, handle_database_errors)
    app.add_exception_handler(OperationalError, handle_database_errors)
    app.add_exception_handler(DatabaseError, handle_database_errors)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        error_id = uuid4()
        log_error_context(request, exc, error_id)

        # Return generic error response without exposing internal details
        return format_error_response(
            category=ErrorCategory.INTERNAL,
            code=ErrorCode.INTERNAL,
            detail="An unexpected error occurred",
            status_code=500,
            metadata={"error_id": str(error_id)},
            suggestions=["Please try again later", "If the problem persists, contact support with the error ID"],
        )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    try:
        settings = get_settings()
    except Exception:
        logger.exception("Failed to load settings")
        raise

    app = FastAPI(
        title="Scrum Sensei API",
        description="Learning contents, quizzes and learner progress",
        version="0.1.0",
        debug=settings.DEBUG,
        lifespan=lifespan if settings.ENVIRONMENT != "test" else None,
    )

    # Note: When allow_credentials=True, allow_origins cannot be ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Check application health status."""
        return {"status": "healthy"}

    _register_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    from scrum_sensei.config import env

    host = env("API_HOST", "127.0.0.1")
    port = int(env("API_PORT", "8080"))

    uvicorn.run(app, host=host, port=port)
