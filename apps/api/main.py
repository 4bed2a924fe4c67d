"""
FastAPI application entrypoint.
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from apps.api.config import get_settings
from apps.api.logging_config import configure_logging
from apps.api.routers import health, uploads
from packages.shared.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)


def create_app() -> FastAPI:
    """Build the application from current settings."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
    )

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, app_exception_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(uploads.router, prefix=f"{settings.api_prefix}/upload", tags=["upload"])

    # Serve uploaded files when they live on local disk
    if settings.storage_backend == "local":
        app.mount(
            settings.public_url_prefix,
            StaticFiles(directory=settings.upload_path, check_dir=False),
            name="uploads",
        )

    return app


app = create_app()
