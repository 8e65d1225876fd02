"""
Rasterization of the selected region into the output bitmap (Qt-free).

``render`` maps the crop from container space back into source pixels,
creates an output surface of the requested size, fills it with the
background color and draws the cropped region onto it: scaled uniformly to
fit, rotated about the surface center and centered.  Parts of the crop that
lie outside the source image are transparent, so the background shows
through there.

Drawing goes through the ``RasterSurface`` capability; ``PillowSurface`` is
the Pillow-backed implementation used by default.
"""

import io
import logging

from PIL import Image

from image_crop_tool.config import (
    JPEG_QUALITY, OUTPUT_FALLBACK_MIME, OUTPUT_FORMATS, OUTPUT_NAME_PREFIX,
    PNG_COMPRESS_LEVEL, WEBP_QUALITY,
)
from image_crop_tool.models import (
    CropArea, ImageGeometry, ImageSource, OutputMode, OutputSpec, RenderError, RenderResult,
)
from image_crop_tool.viewport import source_scale

logger = logging.getLogger(__name__)


# =============================================================================
# Drawing surfaces
# =============================================================================
class RasterSurface:
    """The drawing operations the rasterizer needs from a 2D backend."""

    width: int
    height: int

    def fill_rect(self, color: str, box: tuple[int, int, int, int] | None = None):
        raise NotImplementedError

    def draw_image_region(self, image, box, size: tuple[int, int], rotation_degrees: float = 0.0):
        """Draw *box* of *image* scaled to *size*, rotated clockwise and centered."""
        raise NotImplementedError

    def to_encoded_bytes(self, fmt: str) -> bytes:
        raise NotImplementedError


class PillowSurface(RasterSurface):
    """RGB surface backed by a Pillow image."""

    def __init__(self, image: Image.Image):
        self._image = image
        self.width, self.height = image.size

    @classmethod
    def create(cls, width: int, height: int) -> "PillowSurface":
        try:
            return cls(Image.new("RGB", (width, height)))
        except (ValueError, MemoryError) as exc:
            logger.error("Could not allocate %dx%d surface: %s", width, height, exc)
            raise RenderError("surface unavailable") from exc

    @property
    def image(self) -> Image.Image:
        return self._image

    def fill_rect(self, color: str, box=None):
        if box is None:
            box = (0, 0, self.width, self.height)
        self._image.paste(color, box)

    def draw_image_region(self, image, box, size, rotation_degrees=0.0):
        # RGBA so that pixels outside the source come out transparent
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        region = image.crop(box)
        if region.size != tuple(size):
            region = region.resize(size, Image.Resampling.LANCZOS)
        if rotation_degrees % 360:
            # Pillow rotates counter-clockwise
            region = region.rotate(
                -rotation_degrees, resample=Image.Resampling.BICUBIC, expand=True,
            )
        x = round((self.width - region.width) / 2)
        y = round((self.height - region.height) / 2)
        self._image.paste(region, (x, y), region)

    def to_encoded_bytes(self, fmt: str) -> bytes:
        buf = io.BytesIO()
        if fmt == "JPEG":
            self._image.save(buf, "JPEG", quality=JPEG_QUALITY, subsampling=0)
        elif fmt == "WEBP":
            self._image.save(buf, "WEBP", quality=WEBP_QUALITY)
        else:
            self._image.save(buf, "PNG", compress_level=PNG_COMPRESS_LEVEL)
        return buf.getvalue()


# =============================================================================
# Output naming and format
# =============================================================================
def output_format(mime_type: str) -> tuple[str, str]:
    """Return ``(mime_type, pillow_format)`` for the output of a *mime_type* input."""
    if mime_type in OUTPUT_FORMATS:
        return mime_type, OUTPUT_FORMATS[mime_type]
    return OUTPUT_FALLBACK_MIME, OUTPUT_FORMATS[OUTPUT_FALLBACK_MIME]


def output_file_name(file_name: str) -> str:
    return f"{OUTPUT_NAME_PREFIX}{file_name}"


# =============================================================================
# Rendering
# =============================================================================
def source_region(crop: CropArea, geometry: ImageGeometry, natural) -> tuple[float, float, float, float]:
    """Map *crop* to ``(x, y, w, h)`` in source pixels; the origin never goes negative."""
    scale_x, scale_y = source_scale(geometry, natural)
    sx = max(0.0, (crop.x - geometry.position.x) * scale_x)
    sy = max(0.0, (crop.y - geometry.position.y) * scale_y)
    return sx, sy, crop.width * scale_x, crop.height * scale_y


def output_size(spec: OutputSpec, source_w: float, source_h: float) -> tuple[int, int]:
    if spec.mode is OutputMode.RESOLUTION and spec.target_size is not None:
        tw, th = spec.target_size.width, spec.target_size.height
    else:
        tw, th = source_w, source_h
    return max(1, int(tw)), max(1, int(th))


def render(
    source: ImageSource,
    crop: CropArea,
    geometry: ImageGeometry,
    rotation_degrees: float,
    spec: OutputSpec,
    surface_factory=PillowSurface.create,
) -> RenderResult:
    """Rasterize the crop of *source* into an encoded output bitmap.

    Raises ``RenderError`` if no image geometry is available, the crop is
    empty, or the output surface cannot be created.
    """
    if geometry.size.is_empty():
        raise RenderError("no image loaded")
    sx, sy, sw, sh = source_region(crop, geometry, source.natural_size)
    if sw <= 0 or sh <= 0:
        raise RenderError("empty crop")

    tw, th = output_size(spec, sw, sh)
    surface = surface_factory(tw, th)
    if surface is None:
        raise RenderError("surface unavailable")

    surface.fill_rect(spec.background_color)
    scale = min(tw / sw, th / sh)
    draw_size = (max(1, round(sw * scale)), max(1, round(sh * scale)))
    surface.draw_image_region(source.image, (sx, sy, sx + sw, sy + sh), draw_size, rotation_degrees)

    mime_type, fmt = output_format(source.mime_type)
    data = surface.to_encoded_bytes(fmt)
    logger.info(
        "Rendered %s: source (%.1f, %.1f, %.1f, %.1f) -> %dx%d %s, rotation %g, %d bytes",
        source.file_name, sx, sy, sw, sh, tw, th, fmt, rotation_degrees, len(data),
    )
    return RenderResult(data, mime_type, output_file_name(source.file_name), tw, th)
