"""Failure taxonomy for the upload pipeline."""

import errno
from enum import Enum

from src.imgdrop.core.constants import (
    ERROR_FILE_TOO_LARGE,
    ERROR_INVALID_API_KEY,
    ERROR_INVALID_IMAGE,
    ERROR_MALFORMED_MULTIPART,
    ERROR_MISSING_AUTH,
    ERROR_NO_FILE,
    ERROR_PROCESSING_FAILED,
    ERROR_STORAGE_EXHAUSTED,
    ERROR_UNSUPPORTED_FORMAT,
)


# Write failures that mean the disk or quota is full
SPACE_ERRNOS = frozenset({errno.ENOSPC, errno.EDQUOT})


class ErrorKind(Enum):
    """Every way an upload can fail, with its HTTP status and message."""

    MISSING_OR_MALFORMED_AUTH = (401, ERROR_MISSING_AUTH)
    INVALID_CREDENTIAL = (403, ERROR_INVALID_API_KEY)
    MISSING_FILE = (400, ERROR_NO_FILE)
    UNSUPPORTED_MEDIA_TYPE = (400, ERROR_UNSUPPORTED_FORMAT)
    MALFORMED_MULTIPART = (400, ERROR_MALFORMED_MULTIPART)
    INVALID_IMAGE = (400, ERROR_INVALID_IMAGE)
    PAYLOAD_TOO_LARGE = (413, ERROR_FILE_TOO_LARGE)
    STORAGE_EXHAUSTED = (507, ERROR_STORAGE_EXHAUSTED)
    INTERNAL_PROCESSING_ERROR = (500, ERROR_PROCESSING_FAILED)

    @property
    def status_code(self) -> int:
        """HTTP status surfaced for this kind."""
        return self.value[0]

    @property
    def message(self) -> str:
        """Default client-facing message."""
        return self.value[1]


class UploadError(Exception):
    """Domain exception raised by any pipeline stage."""

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        """Initialize with a taxonomy entry and an optional message override."""
        self.kind = kind
        self.message = message or kind.message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        """HTTP status for the response."""
        return self.kind.status_code


class ConfigError(Exception):
    """Raised when the process configuration is unusable."""
