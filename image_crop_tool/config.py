"""
Application constants and configuration.

All crop-editor behaviour (zoom and rotation ranges, the minimum crop size,
aspect presets), output encoding and logging defaults live here.  Nothing
is persisted; every value is a module-level constant.
"""

import logging
import os

# =============================================================================
# APP IDENTITY
# =============================================================================
APP_NAME = "image-crop-tool"

# =============================================================================
# LOGGING
# =============================================================================
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
LOG_LEVEL_ENV = "IMAGE_CROP_TOOL_LOG_LEVEL"


def log_level() -> int:
    """Return the configured log level, falling back to INFO for unknown names."""
    name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


# =============================================================================
# ASPECT PRESETS ("free" and "custom" are handled by controls.parse_aspect)
# =============================================================================
ASPECT_FREE = "free"
ASPECT_CUSTOM = "custom"

ASPECT_PRESETS = [
    {"name": "1:1", "label": "Square", "ratio_w": 1, "ratio_h": 1},
    {"name": "16:9", "label": "Landscape", "ratio_w": 16, "ratio_h": 9},
    {"name": "9:16", "label": "Portrait", "ratio_w": 9, "ratio_h": 16},
    {"name": "4:3", "label": "Classic", "ratio_w": 4, "ratio_h": 3},
    {"name": "3:4", "label": "Portrait", "ratio_w": 3, "ratio_h": 4},
]

# Preset selected when the editor opens
ASPECT_DEFAULT = "1:1"

# Two ratios closer than this are considered equal
ASPECT_TOLERANCE = 0.01

# Used whenever a custom width/height pair does not give a positive ratio
ASPECT_FALLBACK = 1.0

# =============================================================================
# VIEW CONTROLS
# =============================================================================
ZOOM_MIN = 0.5
ZOOM_MAX = 3.0
ZOOM_STEP = 0.1
ZOOM_DEFAULT = 1.0

ROTATION_MIN = 0.0
ROTATION_MAX = 360.0
ROTATION_DEFAULT = 0.0

# Minimum crop size (container pixels)
MIN_CROP_SIZE = 20

# Handle size for resize corners (pixels in screen coordinates)
HANDLE_SIZE = 10

# =============================================================================
# SCHEDULING
# =============================================================================
# One display refresh at ~60 fps
FRAME_INTERVAL_MS = 16

# Quiet period before a container resize is applied
RESIZE_DEBOUNCE_MS = 100

# =============================================================================
# OUTPUT
# =============================================================================
MODE_ASPECT = "aspect"
MODE_RESOLUTION = "resolution"

DEFAULT_TARGET_WIDTH = 1080
DEFAULT_TARGET_HEIGHT = 1080

DEFAULT_BACKGROUND = "#ffffff"

# Output name is derived from the input name
OUTPUT_NAME_PREFIX = "cropped-"

# Mime types accepted from the file picker
INPUT_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}

# PSD files are composited with psd-tools and treated as PNG
PSD_EXTENSIONS = {".psd"}

# Output formats that keep the input's encoding; anything else becomes PNG
OUTPUT_FORMATS = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}
OUTPUT_FALLBACK_MIME = "image/png"

# Maximum quality for every encoder
JPEG_QUALITY = 100
WEBP_QUALITY = 100
PNG_COMPRESS_LEVEL = 9

# File dialog filter
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".psd"}
