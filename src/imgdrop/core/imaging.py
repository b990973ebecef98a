"""Decode uploaded images and re-encode them as metadata-free WebP."""

import io
import logging
import struct

from PIL import Image as PILImage
from PIL import ImageOps, ImageSequence, UnidentifiedImageError

from src.imgdrop.core.constants import (
    DEFAULT_FRAME_DURATION,
    GIF_FORMAT,
    MAX_ANIMATION_PIXELS,
    PLAY_ONCE_LOOP,
    WEBP_FORMAT,
    WEBP_METHOD,
    WEBP_QUALITY,
)
from src.imgdrop.core.errors import SPACE_ERRNOS, ErrorKind, UploadError
from src.imgdrop.core.models import ImageMetadata, TranscodedImage

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (
    UnidentifiedImageError,
    EOFError,
    struct.error,
    PILImage.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
)


def _normalize_mode(img: PILImage.Image) -> PILImage.Image:
    """Convert to a mode the WebP encoder accepts."""
    if img.mode in ("RGB", "RGBA"):
        return img
    has_alpha = img.mode in ("LA", "PA", "La") or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")


def _encode_options() -> dict:
    """WebP encoder settings, with every metadata chunk left empty."""
    return {
        "format": WEBP_FORMAT,
        "quality": WEBP_QUALITY,
        "method": WEBP_METHOD,
        "exif": b"",
        "icc_profile": "",
        "xmp": "",
    }


def _encode_still(img: PILImage.Image) -> tuple[bytes, tuple[int, int]]:
    upright = ImageOps.exif_transpose(img)
    frame = _normalize_mode(upright)
    buffer = io.BytesIO()
    frame.save(buffer, **_encode_options())
    return buffer.getvalue(), frame.size


def _read_frames(img: PILImage.Image) -> tuple[list[PILImage.Image], list[int], int]:
    loop = img.info.get("loop", PLAY_ONCE_LOOP)
    total_pixels = img.width * img.height * img.n_frames
    if total_pixels > MAX_ANIMATION_PIXELS:
        logger.warning(
            "Rejecting animation of %s frames at %sx%s",
            img.n_frames,
            img.width,
            img.height,
        )
        raise UploadError(ErrorKind.INVALID_IMAGE)

    frames = []
    durations = []
    for frame in ImageSequence.Iterator(img):
        durations.append(frame.info.get("duration", DEFAULT_FRAME_DURATION))
        frames.append(frame.convert("RGBA"))
    return frames, durations, loop


def _encode_animated(
    frames: list[PILImage.Image],
    durations: list[int],
    loop: int,
) -> tuple[bytes, tuple[int, int]]:
    first, rest = frames[0], frames[1:]
    buffer = io.BytesIO()
    first.save(
        buffer,
        save_all=True,
        append_images=rest,
        duration=durations,
        loop=loop,
        **_encode_options(),
    )
    return buffer.getvalue(), first.size


def _encode_failure(err: Exception) -> UploadError:
    if isinstance(err, OSError) and err.errno in SPACE_ERRNOS:
        return UploadError(ErrorKind.STORAGE_EXHAUSTED)
    return UploadError(ErrorKind.INTERNAL_PROCESSING_ERROR)


def transcode_to_webp(data: bytes) -> TranscodedImage:
    """Decode ``data``, fix its orientation and re-encode it as WebP.

    GIF sources keep all of their frames; every other format is reduced to a
    single still frame. Raises UploadError(INVALID_IMAGE) when the bytes
    cannot be decoded.
    """
    try:
        img = PILImage.open(io.BytesIO(data))
        img.load()
    except _DECODE_ERRORS as err:
        logger.info("Could not decode upload: %s", err)
        raise UploadError(ErrorKind.INVALID_IMAGE) from err

    with img:
        source_format = (img.format or "").lower()
        animated = img.format == GIF_FORMAT
        logger.info(
            "Processing %s image: %sx%s%s",
            source_format,
            img.width,
            img.height,
            " (animated)" if animated else "",
        )

        if animated:
            try:
                frames, durations, loop = _read_frames(img)
            except _DECODE_ERRORS as err:
                logger.info("Could not decode animation frames: %s", err)
                raise UploadError(ErrorKind.INVALID_IMAGE) from err

        try:
            if animated:
                encoded, (width, height) = _encode_animated(frames, durations, loop)
                frame_count = len(frames)
            else:
                encoded, (width, height) = _encode_still(img)
                frame_count = 1
        except (OSError, ValueError, SyntaxError, MemoryError) as err:
            logger.exception("WebP encoding failed")
            raise _encode_failure(err) from err

    return TranscodedImage(
        data=encoded,
        metadata=ImageMetadata(
            format=source_format,
            width=width,
            height=height,
            animated=animated,
            frame_count=frame_count,
        ),
    )
