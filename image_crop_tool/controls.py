"""
Parsing and validation of control input.

Sliders, combo boxes and text fields deliver raw strings and numbers; the
helpers here turn them into the values ``CropState`` and the rasterizer
expect.  Bad input is never an error: it falls back to a sane default
(ratio 1, white background, 1080 pixels) and is logged.

This module is Qt-free.
"""

import logging
import re
from math import gcd

from image_crop_tool.config import (
    ASPECT_CUSTOM, ASPECT_FALLBACK, ASPECT_FREE, ASPECT_PRESETS,
    DEFAULT_BACKGROUND, DEFAULT_TARGET_HEIGHT, DEFAULT_TARGET_WIDTH,
)
from image_crop_tool.crop_state import clamp_rotation
from image_crop_tool.models import OutputMode, OutputSpec, Size

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#([0-9A-F]{3}){1,2}$", re.IGNORECASE)
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


# =============================================================================
# Aspect-ratio helpers
# =============================================================================
def normalize_ratio(w: int, h: int) -> tuple[int, int]:
    """Reduce ratio to simplest form via GCD. (21, 9) → (7, 3)"""
    g = gcd(w, h)
    return w // g, h // g


def aspect_key(w: int, h: int) -> str:
    """Normalized string key for a ratio. (32, 18) → '16:9'"""
    nw, nh = normalize_ratio(w, h)
    return f"{nw}:{nh}"


def preset_ratios() -> dict[str, float]:
    """Map each preset's ``aspect_key`` to its ratio."""
    return {
        aspect_key(p["ratio_w"], p["ratio_h"]): p["ratio_w"] / p["ratio_h"]
        for p in ASPECT_PRESETS
    }


def _parse_float(text) -> float | None:
    try:
        value = float(text)
    except (TypeError, ValueError):
        return None
    return value if value == value else None  # NaN


def custom_ratio(width, height) -> float:
    """Ratio from a custom width/height pair; non-positive or non-numeric gives 1."""
    w = _parse_float(width)
    h = _parse_float(height)
    if not w or not h or w <= 0 or h <= 0:
        logger.warning("Invalid custom aspect %r:%r, using %g", width, height, ASPECT_FALLBACK)
        return ASPECT_FALLBACK
    return w / h


def parse_aspect(selection: str, custom_width="1", custom_height="1") -> float | None:
    """Turn an aspect selection into a ratio, or ``None`` for free-form.

    *selection* is ``"free"``, ``"custom"`` (uses the width/height pair),
    a ``"W:H"`` string such as ``"16:9"``, or a plain number.
    """
    if selection == ASPECT_FREE:
        return None
    if selection == ASPECT_CUSTOM:
        return custom_ratio(custom_width, custom_height)
    if isinstance(selection, str) and ":" in selection:
        w, _, h = selection.partition(":")
        return custom_ratio(w, h)
    value = _parse_float(selection)
    if value is None or value <= 0:
        logger.warning("Unknown aspect selection %r, using %g", selection, ASPECT_FALLBACK)
        return ASPECT_FALLBACK
    return value


# =============================================================================
# Colors and resolutions
# =============================================================================
def parse_hex_color(text: str) -> str:
    """Validate a ``#rgb`` / ``#rrggbb`` color; anything else becomes white."""
    if isinstance(text, str) and _HEX_COLOR.match(text.strip()):
        return text.strip()
    logger.warning("Invalid background color %r, using %s", text, DEFAULT_BACKGROUND)
    return DEFAULT_BACKGROUND


def parse_dimension(text, default: int) -> int:
    """Parse the leading integer of *text*; zero or no digits gives *default*."""
    if isinstance(text, int):
        value = text
    else:
        match = _LEADING_INT.match(str(text))
        value = int(match.group(1)) if match else 0
    if value == 0:
        logger.warning("Unparsable dimension %r, using %d", text, default)
        return default
    return value


def parse_target_resolution(width, height) -> Size:
    return Size(
        parse_dimension(width, DEFAULT_TARGET_WIDTH),
        parse_dimension(height, DEFAULT_TARGET_HEIGHT),
    )


def build_output_spec(
    mode: str,
    target_width="",
    target_height="",
    extend_canvas: bool = False,
    background: str = DEFAULT_BACKGROUND,
    rotation: float = 0.0,
) -> OutputSpec:
    """Collect the output controls into an ``OutputSpec``."""
    output_mode = OutputMode(mode)
    target = None
    if output_mode is OutputMode.RESOLUTION:
        target = parse_target_resolution(target_width, target_height)
    return OutputSpec(
        mode=output_mode,
        target_size=target,
        extend_canvas=bool(extend_canvas),
        background_color=parse_hex_color(background),
        rotation_degrees=clamp_rotation(rotation),
    )
