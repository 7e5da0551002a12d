import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from scenesync.config import settings
from scenesync.core.cors import StaticCORSMiddleware
from scenesync.core.database import close_db, init_db
from scenesync.core.errors import SceneSyncError
from scenesync.core.errors.middleware import (
    http_exception_handler,
    scenesync_error_handler,
    unhandled_exception_handler,
)
from scenesync.core.errors.registry import error_registry
from scenesync.core.log_middleware import CorrelationMiddleware
from scenesync.core.structured_logging import APP_VERSION, setup_logging
from scenesync.routers import scenes

setup_logging(
    log_level=settings.log_level.upper(),
    log_dir=settings.log_dir if settings.log_to_file else None,
    log_file=settings.log_file,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s v%s (kv_backend=%s)", settings.app_name, APP_VERSION, settings.kv_backend)

    error_registry.load()
    if settings.kv_backend == "sql":
        init_db()
        logger.info("Database initialized")

    yield

    logger.info("Shutting down %s...", settings.app_name)
    close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    # No docs/openapi routes and no trailing-slash redirects: every path
    # other than /api/scenes is a 404.
    app = FastAPI(
        title=settings.app_name,
        version=APP_VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
        lifespan=lifespan,
    )

    # Added last = outermost: preflights never reach routing
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(StaticCORSMiddleware)

    app.add_exception_handler(SceneSyncError, scenesync_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(scenes.router, prefix="/api", tags=["scenes"])

    return app


app = create_app()
