"""Error code constants for pyxeldoc.

These constants prevent stringly-typed error kinds and let callers
branch on the exact failure without parsing messages.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Failure kinds raised while opening a document."""

    # Archive
    OPEN_FAILED = "OPEN_FAILED"
    INVALID_ARCHIVE = "INVALID_ARCHIVE"
    MISSING_ENTRY = "MISSING_ENTRY"
    CORRUPT_ENTRY = "CORRUPT_ENTRY"

    # Descriptor
    MALFORMED = "MALFORMED"
    SCHEMA_SHAPE = "SCHEMA_SHAPE"

    # Version
    UNSUPPORTED_VERSION = "UNSUPPORTED_VERSION"

    # Model
    INVALID_DIMENSIONS = "INVALID_DIMENSIONS"
    INVALID_OPACITY = "INVALID_OPACITY"
    UNKNOWN_BLEND_MODE = "UNKNOWN_BLEND_MODE"
    MISSING_ASSET = "MISSING_ASSET"
    TILE_INDEX_OUT_OF_RANGE = "TILE_INDEX_OUT_OF_RANGE"
    INVALID_COLOR = "INVALID_COLOR"
    EMPTY_PALETTE = "EMPTY_PALETTE"
    INVALID_ANIMATION = "INVALID_ANIMATION"
    IMAGE_DECODE_FAILED = "IMAGE_DECODE_FAILED"
