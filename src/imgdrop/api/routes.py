"""API routes for image upload and serving."""

import logging
import time
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool

from src.imgdrop.core.config import Settings
from src.imgdrop.core.constants import (
    ERROR_IMAGE_NOT_FOUND,
    IMAGE_CACHE_CONTROL,
    SERVE_RATE_LIMIT,
    UPLOAD_RATE_LIMIT,
    WEBP_MEDIA_TYPE,
)
from src.imgdrop.core.errors import ErrorKind, UploadError
from src.imgdrop.core.imaging import transcode_to_webp
from src.imgdrop.core.models import (
    ErrorResponse,
    HealthCheck,
    ImageSize,
    ImageUploadResponse,
)
from src.imgdrop.core.rate_limiter import limiter
from src.imgdrop.core.security import get_settings, require_api_key
from src.imgdrop.core.storage import write_artifact
from src.imgdrop.core.uploads import decode_upload
from src.imgdrop.core.utils import (
    generate_filename,
    is_stored_filename,
    resolve_output_path,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    507: {"model": ErrorResponse},
}


async def _run_stage(func, *args):  # noqa: ANN001, ANN202
    """Run a blocking stage off the event loop, folding stray errors into 500."""
    try:
        return await run_in_threadpool(func, *args)
    except UploadError:
        raise
    except Exception as err:
        logger.exception("Unexpected failure in %s", func.__name__)
        raise UploadError(ErrorKind.INTERNAL_PROCESSING_ERROR) from err


@router.post(
    "/upload",
    status_code=201,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(require_api_key)],
)
@limiter.limit(UPLOAD_RATE_LIMIT)
async def upload_image(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> ImageUploadResponse:
    """Upload an image and store it as WebP."""
    upload = await decode_upload(request)
    logger.debug(
        "Received %s (%d bytes, declared name %r)",
        upload.content_type,
        len(upload.data),
        upload.original_filename,
    )

    transcoded = await _run_stage(transcode_to_webp, upload.data)
    metadata = transcoded.metadata

    filename = generate_filename()
    output_path = resolve_output_path(settings.upload_dir, filename)
    await _run_stage(write_artifact, output_path, transcoded.data)

    logger.info("Image uploaded successfully: %s", filename)

    return ImageUploadResponse(
        success=True,
        url=f"{settings.base_url}/images/{filename}",
        filename=filename,
        original_format=metadata.format,
        size=ImageSize(width=metadata.width, height=metadata.height),
    )


@router.get("/images/{filename}")
@limiter.limit(SERVE_RATE_LIMIT)
async def serve_image(
    filename: str,
    request: Request,  # noqa: ARG001
    settings: Annotated[Settings, Depends(get_settings)],
) -> FileResponse:
    """Serve a stored image."""
    if not is_stored_filename(filename):
        raise HTTPException(status_code=404, detail=ERROR_IMAGE_NOT_FOUND)

    image_path = settings.upload_dir.resolve() / filename
    if not image_path.is_file():
        raise HTTPException(status_code=404, detail=ERROR_IMAGE_NOT_FOUND)

    return FileResponse(
        path=image_path,
        media_type=WEBP_MEDIA_TYPE,
        headers={"Cache-Control": IMAGE_CACHE_CONTROL},
    )


@router.get("/health")
async def health_check(request: Request) -> HealthCheck:
    """Health check endpoint."""
    return HealthCheck(
        status="ok",
        timestamp=datetime.now(UTC),
        uptime=time.monotonic() - request.app.state.started_at,
    )
