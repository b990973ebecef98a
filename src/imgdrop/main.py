"""Image ingestion service"""

import logging
import sys
import time

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.imgdrop.core.config import Settings, load_settings
from src.imgdrop.core.constants import (
    APP_DESCRIPTION,
    APP_TITLE,
    APP_VERSION,
    ERROR_INTERNAL,
)
from src.imgdrop.core.errors import ConfigError, UploadError
from src.imgdrop.core.rate_limiter import limiter
from src.imgdrop.core.storage import ensure_storage_root

from .api.routes import router

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "cross-origin",
    "X-DNS-Prefetch-Control": "off",
}


async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    """Convert a pipeline failure into its status and error body."""
    logger.warning(
        "Upload failed: %s (%s) for %s",
        exc.kind.name,
        exc.status_code,
        request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def http_exception_handler(
    request: Request,  # noqa: ARG001
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Render framework HTTP errors with the same envelope."""
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=exc.headers,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; one failing request must not affect the others."""
    logger.error(
        "Unhandled exception %s for %s",
        type(exc).__name__,
        request.url.path,
        exc_info=exc,
    )
    # Served from the outermost middleware, past add_security_headers
    return JSONResponse(
        status_code=500,
        content={"error": ERROR_INTERNAL},
        headers=SECURITY_HEADERS,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; settings come from the environment if omitted."""
    if settings is None:
        settings = load_settings()

    upload_dir = ensure_storage_root(settings.upload_dir)
    settings = settings.model_copy(update={"upload_dir": upload_dir})

    app = FastAPI(title=APP_TITLE, description=APP_DESCRIPTION, version=APP_VERSION)
    app.state.settings = settings
    app.state.started_at = time.monotonic()

    # Add rate limiting to app
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(UploadError, upload_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):  # noqa: ANN001, ANN202
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    # Include API routes
    app.include_router(router)
    return app


def run() -> None:
    """Console entry point: validate configuration, then serve."""
    load_dotenv()
    try:
        settings = load_settings()
    except ConfigError as err:
        logging.basicConfig(level=logging.INFO)
        logger.error("ERROR: %s", err)  # noqa: TRY400
        logger.error(
            'Generate a secure key with: python -c "import secrets; '
            'print(secrets.token_hex(32))"',
        )
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(settings)

    logger.info("Image server started")
    logger.info("Port: %s", settings.port)
    logger.info("Upload directory: %s", app.state.settings.upload_dir)
    logger.info("Base URL: %s", settings.base_url)
    logger.info("Endpoints: POST /upload, GET /images/<filename>, GET /health")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        server_header=False,
        log_config=None,
    )


if __name__ == "__main__":
    run()
