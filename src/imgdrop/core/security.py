"""Bearer credential verification."""

import hmac
import logging
from enum import Enum
from typing import Annotated

from fastapi import Depends, Header, Request

from src.imgdrop.core.config import Settings
from src.imgdrop.core.constants import BEARER_PREFIX
from src.imgdrop.core.errors import ErrorKind, UploadError

logger = logging.getLogger(__name__)


class AuthVerdict(Enum):
    """Outcome of checking an Authorization header."""

    AUTHENTICATED = "authenticated"
    MISSING_OR_MALFORMED = "missing_or_malformed"
    INVALID = "invalid"


def verify_credential(header: str | None, secret: str) -> AuthVerdict:
    """Check a raw Authorization header value against the configured secret.

    Tokens whose length differs from the secret are rejected without a
    constant-time comparison; only the comparison of equal-length values is
    timing safe.
    """
    if not header or not header.startswith(BEARER_PREFIX):
        return AuthVerdict.MISSING_OR_MALFORMED

    token = header[len(BEARER_PREFIX) :]
    if len(token) != len(secret):
        return AuthVerdict.INVALID
    if not hmac.compare_digest(token.encode(), secret.encode()):
        return AuthVerdict.INVALID
    return AuthVerdict.AUTHENTICATED


def get_settings(request: Request) -> Settings:
    """Dependency to get the application settings."""
    return request.app.state.settings


def require_api_key(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Reject the request unless it carries the configured bearer token."""
    verdict = verify_credential(authorization, settings.api_key)
    if verdict is AuthVerdict.AUTHENTICATED:
        return

    client = request.client.host if request.client else "unknown"
    logger.warning("Rejected upload from %s: %s", client, verdict.value)
    if verdict is AuthVerdict.MISSING_OR_MALFORMED:
        raise UploadError(ErrorKind.MISSING_OR_MALFORMED_AUTH)
    raise UploadError(ErrorKind.INVALID_CREDENTIAL)
