"""Pydantic models for data validation."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ImageSize(BaseModel):
    """Pixel dimensions of a stored image."""

    width: int = Field(description="Width in pixels")
    height: int = Field(description="Height in pixels")


class ImageUploadResponse(BaseModel):
    """Response model for image upload."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(description="Upload success status")
    url: str = Field(description="Public image URL")
    filename: str = Field(description="Generated storage filename")
    original_format: str = Field(
        alias="originalFormat",
        description="Format detected in the uploaded bytes",
    )
    size: ImageSize = Field(description="Stored image dimensions")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(description="Error message")


class HealthCheck(BaseModel):
    """Health check response model."""

    status: str = Field(description="Service status")
    timestamp: datetime = Field(description="Check timestamp")
    uptime: float = Field(description="Seconds since the service started")


@dataclass(frozen=True, slots=True)
class IncomingUpload:
    """Decoded upload, alive for one request only."""

    data: bytes
    content_type: str
    original_filename: str | None


@dataclass(frozen=True, slots=True)
class ImageMetadata:
    """Properties read from the uploaded image."""

    format: str
    width: int
    height: int
    animated: bool
    frame_count: int = 1


@dataclass(frozen=True, slots=True)
class TranscodedImage:
    """WebP bytes ready to be written, with their metadata."""

    data: bytes
    metadata: ImageMetadata
