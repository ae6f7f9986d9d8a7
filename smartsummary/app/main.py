"""Smart Summary FastAPI application.

This is the main application module that:
- Initializes the FastAPI application
- Configures middleware (CORS, exception handling)
- Registers all route handlers
- Manages application lifespan (startup/shutdown)
"""
import logging
import os
import traceback
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from smartsummary.app.dependencies import get_app_state, init_app_state
from smartsummary.config.loader import ConfigLoader

# Configure structured JSON logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Handles startup initialization and shutdown cleanup for:
    - Configuration loading and validation
    - Record store connection
    - Provider adapters and router
    """
    state = get_app_state()

    # Startup
    config_path = os.getenv("SMARTSUMMARY_CONFIG", "config.yaml")
    logger.info(f"Loading configuration from {config_path}")
    try:
        config = ConfigLoader(config_path).load()
    except ValueError as e:
        logger.critical(f"Configuration validation failed: {e}")
        raise

    init_app_state(state, config)
    logging.getLogger().setLevel(getattr(logging, config.log_level.upper(), logging.INFO))
    logger.info(f"Record store backend: {config.store.backend}")
    state.router.log_availability()

    yield

    # Shutdown
    logger.info("Shutting down Smart Summary...")
    if state.summary_service:
        await state.summary_service.drain()
    if state.http_client:
        await state.http_client.aclose()
    if state.store:
        await state.store.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Smart Summary",
        version="1.0.0",
        description=(
            "Streaming text summarization proxy with OpenRouter/OpenAI "
            "fallback, usage and cost accounting, and request records."
        ),
        lifespan=lifespan,
    )

    # Configure CORS middleware
    _configure_cors(app)

    # Register exception handlers
    _register_exception_handlers(app)

    # Register routes
    _register_routes(app)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware."""
    cors_origins_env = os.getenv("CORS_ORIGINS", "*")
    is_production = os.getenv("ENVIRONMENT", "").lower() == "production"

    if cors_origins_env == "*":
        if is_production:
            logger.warning(
                "SECURITY WARNING: CORS_ORIGINS is set to '*' in production. "
                "Consider restricting to specific origins."
            )
        cors_origins = ["*"]
    else:
        cors_origins = _validate_cors_origins(cors_origins_env)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _validate_cors_origins(cors_origins_env: str) -> List[str]:
    """Validate and filter CORS origins.

    Args:
        cors_origins_env: Comma-separated CORS origins string

    Returns:
        List of validated CORS origins
    """
    validated_origins = []
    for origin in (o.strip() for o in cors_origins_env.split(",")):
        if not origin:
            continue
        if origin != "*" and not origin.startswith(("http://", "https://")):
            logger.warning(f"Invalid CORS origin format (skipping): {origin}")
            continue
        validated_origins.append(origin)
    return validated_origins


def _register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        error_details = traceback.format_exc()
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}\n{error_details}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": {
                    "code": getattr(getattr(exc, "code", None), "value", "INTERNAL_ERROR"),
                    "message": f"Internal server error: {str(exc)}",
                },
            },
        )


def _register_routes(app: FastAPI) -> None:
    """Register all route handlers."""
    from smartsummary.app.routes import health, summary

    app.include_router(health.router)
    app.include_router(summary.router)


# Create the application instance
app = create_app()


def main() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    main()
