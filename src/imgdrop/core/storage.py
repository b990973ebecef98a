"""Filesystem persistence for stored images."""

import logging
import os
import tempfile
from pathlib import Path

from src.imgdrop.core.errors import SPACE_ERRNOS, ErrorKind, UploadError

logger = logging.getLogger(__name__)


def ensure_storage_root(path: Path) -> Path:
    """Create the storage root if needed and return its resolved path."""
    created = not path.exists()
    path.mkdir(parents=True, exist_ok=True)
    resolved = path.resolve()
    if created:
        logger.info("Created upload directory: %s", resolved)
    return resolved


def write_artifact(path: Path, data: bytes) -> None:
    """Atomically write ``data`` to ``path``.

    The bytes go to a hidden temporary file in the same directory first and
    are renamed into place only once fully flushed, so a reader never sees a
    partial image under the final name.
    """
    tmp_path = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=".part",
            dir=path.parent,
        )
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "wb") as tmp_file:
            tmp_file.write(data)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        tmp_path.chmod(0o644)
        tmp_path.replace(path)
    except OSError as err:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise _write_failure(path, err) from err


def _write_failure(path: Path, err: OSError) -> UploadError:
    if err.errno in SPACE_ERRNOS:
        logger.error("No space left writing %s", path.name)  # noqa: TRY400
        return UploadError(ErrorKind.STORAGE_EXHAUSTED)
    logger.error("Failed to write %s: %s", path.name, err)  # noqa: TRY400
    return UploadError(ErrorKind.INTERNAL_PROCESSING_ERROR)
