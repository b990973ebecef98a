"""Utility functions for naming stored images."""

import logging
import re
import secrets
import time
from pathlib import Path

from src.imgdrop.core.constants import (
    OUTPUT_EXTENSION,
    RANDOM_SUFFIX_BYTES,
    STORED_FILENAME_PATTERN,
)
from src.imgdrop.core.errors import ErrorKind, UploadError

logger = logging.getLogger(__name__)

_STORED_FILENAME_RE = re.compile(STORED_FILENAME_PATTERN)


def generate_filename(now_ms: int | None = None) -> str:
    """Generate a ``<epoch-ms>-<16 hex>.webp`` name from a secure random source."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{now_ms}-{secrets.token_hex(RANDOM_SUFFIX_BYTES)}{OUTPUT_EXTENSION}"


def is_stored_filename(name: str) -> bool:
    """Return True if ``name`` has the shape of a generated filename."""
    return _STORED_FILENAME_RE.fullmatch(name) is not None


def resolve_output_path(root: Path, filename: str) -> Path:
    """Resolve ``filename`` inside ``root``, failing if it lands anywhere else."""
    resolved_root = root.resolve()
    output_path = (resolved_root / filename).resolve()
    if output_path.parent != resolved_root:
        logger.error("Refusing path outside storage root: %s", output_path)
        raise UploadError(ErrorKind.INTERNAL_PROCESSING_ERROR)
    return output_path
