"""Constants used throughout the application."""

# Upload constraints
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB in bytes
MULTIPART_OVERHEAD = 64 * 1024  # boundaries and part headers around the file
MAX_BODY_SIZE = MAX_FILE_SIZE + MULTIPART_OVERHEAD
UPLOAD_FIELD_NAME = "image"
MAX_UPLOAD_FILES = 1
MAX_UPLOAD_FIELDS = 8
ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/gif",
    },
)

# Image processing constants
GIF_FORMAT = "GIF"
WEBP_FORMAT = "WEBP"
WEBP_QUALITY = 80
WEBP_METHOD = 4  # encoder effort, 0 (fast) to 6 (slow)
WEBP_MEDIA_TYPE = "image/webp"
DEFAULT_FRAME_DURATION = 100
MAX_ANIMATION_PIXELS = 89_478_485  # whole animation, all frames together
PLAY_ONCE_LOOP = 1  # GIFs without a NETSCAPE loop block play a single time

# Naming
OUTPUT_EXTENSION = ".webp"
RANDOM_SUFFIX_BYTES = 8
STORED_FILENAME_PATTERN = r"^\d+-[0-9a-f]{16}\.webp$"

# Authentication
BEARER_PREFIX = "Bearer "
MIN_API_KEY_LENGTH = 32

# Rate limiting constants
UPLOAD_RATE_LIMIT = "120/minute"
SERVE_RATE_LIMIT = "600/minute"

# Serving
IMAGE_CACHE_CONTROL = "public, max-age=31536000, immutable"

# Error messages
ERROR_MISSING_AUTH = (
    "Missing or invalid authorization header. "
    "Authorization header must be in format: Bearer YOUR_API_KEY"
)
ERROR_INVALID_API_KEY = "Invalid API key"
ERROR_NO_FILE = (
    'No image file provided. Use multipart/form-data with field name "image".'
)
ERROR_UNSUPPORTED_FORMAT = (
    "Invalid file type. Only JPEG, PNG, WebP, and GIF images are allowed."
)
ERROR_MALFORMED_MULTIPART = "Malformed multipart/form-data request body."
ERROR_FILE_TOO_LARGE = "File too large. Maximum size is 10MB."
ERROR_INVALID_IMAGE = "Invalid or corrupted image file."
ERROR_STORAGE_EXHAUSTED = "Insufficient storage space on server."
ERROR_PROCESSING_FAILED = "Failed to process image"
ERROR_INTERNAL = "Internal server error"
ERROR_IMAGE_NOT_FOUND = "Image not found"

# Application settings
APP_TITLE = "imgdrop - Image Ingestion Service"
APP_DESCRIPTION = "Authenticated image upload service that stores WebP copies"
APP_VERSION = "1.0.0"
