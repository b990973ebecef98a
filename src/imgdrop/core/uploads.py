"""Multipart decoding with size and type limits."""

import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from src.imgdrop.core.constants import (
    ALLOWED_MIME_TYPES,
    MAX_BODY_SIZE,
    MAX_FILE_SIZE,
    MAX_UPLOAD_FIELDS,
    MAX_UPLOAD_FILES,
    UPLOAD_FIELD_NAME,
)
from src.imgdrop.core.errors import ErrorKind, UploadError
from src.imgdrop.core.models import IncomingUpload

logger = logging.getLogger(__name__)


def _check_content_type(request: Request) -> None:
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise UploadError(ErrorKind.MALFORMED_MULTIPART)


def _check_declared_length(request: Request, limit: int) -> None:
    """Fail before reading the body when Content-Length is already too big."""
    declared = request.headers.get("content-length")
    if declared is None:
        return
    try:
        length = int(declared)
    except ValueError as err:
        raise UploadError(ErrorKind.MALFORMED_MULTIPART) from err
    if length > limit:
        raise UploadError(ErrorKind.PAYLOAD_TOO_LARGE)


class BodyTooLargeError(MultiPartException):
    """Body crossed the byte ceiling mid-parse; the parser closes open spools."""


async def _limited_stream(
    request: Request,
    limit: int,
) -> AsyncGenerator[bytes, None]:
    """Yield body chunks, aborting once more than ``limit`` bytes arrived."""
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            msg = f"Request body exceeds {limit} bytes"
            raise BodyTooLargeError(msg)
        yield chunk


async def decode_upload(
    request: Request,
    max_file_size: int = MAX_FILE_SIZE,
    max_body_size: int = MAX_BODY_SIZE,
) -> IncomingUpload:
    """Parse the single ``image`` file out of a multipart request body."""
    _check_content_type(request)
    _check_declared_length(request, max_body_size)

    parser = MultiPartParser(
        request.headers,
        _limited_stream(request, max_body_size),
        max_files=MAX_UPLOAD_FILES,
        max_fields=MAX_UPLOAD_FIELDS,
    )
    try:
        form = await parser.parse()
    except BodyTooLargeError as err:
        raise UploadError(ErrorKind.PAYLOAD_TOO_LARGE) from err
    except (MultiPartException, KeyError, ValueError) as err:
        logger.info("Rejected multipart body: %s", err)
        raise UploadError(ErrorKind.MALFORMED_MULTIPART) from err

    try:
        upload = form.get(UPLOAD_FIELD_NAME)
        if not isinstance(upload, UploadFile):
            raise UploadError(ErrorKind.MISSING_FILE)

        content_type = (upload.content_type or "").lower()
        if content_type not in ALLOWED_MIME_TYPES:
            raise UploadError(ErrorKind.UNSUPPORTED_MEDIA_TYPE)

        data = await upload.read(max_file_size + 1)
        if len(data) > max_file_size:
            raise UploadError(ErrorKind.PAYLOAD_TOO_LARGE)
        if not data:
            raise UploadError(ErrorKind.MISSING_FILE)

        return IncomingUpload(
            data=data,
            content_type=content_type,
            original_filename=upload.filename,
        )
    finally:
        await form.close()
