"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from nutshell.api.v1.router import router as api_router
from nutshell.config import get_settings
from nutshell.container import build_container
from nutshell.domain.errors import StorageUnavailable

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Nutshell application...")
    logger.info(f"Environment: {settings.environment}")

    container = await build_container(settings)
    app.state.container = container

    yield

    await container.aclose()
    logger.info("Shutting down Nutshell application...")


async def storage_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report database failures as 503."""
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return JSONResponse({"detail": str(exc)}, status_code=503)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    docs_kwargs = {}
    if settings.is_production:
        docs_kwargs = {"docs_url": None, "redoc_url": None, "openapi_url": None}

    app = FastAPI(
        title="Nutshell",
        description="Summarize text and web pages, and keep the summaries you like",
        version="0.1.0",
        lifespan=lifespan,
        **docs_kwargs,
    )

    app.include_router(api_router)
    app.add_exception_handler(StorageUnavailable, storage_unavailable_handler)

    @app.get("/health")
    async def health_check(request: Request) -> JSONResponse:
        """Lightweight health check with DB connectivity test."""
        container = request.app.state.container
        try:
            async with container.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return JSONResponse({"status": "healthy", "database": "connected"})
        except Exception:
            return JSONResponse(
                {"status": "unhealthy", "database": "disconnected"},
                status_code=503,
            )

    return app


# Create app instance
app = create_app()
