"""
Data models and crop-geometry utilities.

Every rectangle the editor works with is expressed in *container*
coordinates: the pixel space of the widget that displays the image.
``ImageGeometry`` says where the scaled image sits inside that space and
``CropArea`` is the user's selection in the same space.  ``ImageSource``
and ``RenderResult`` are the payloads exchanged with ingestion and export.
"""

import enum
from dataclasses import dataclass, field

from PIL import Image

from image_crop_tool.config import ASPECT_TOLERANCE, DEFAULT_BACKGROUND, MODE_ASPECT, MODE_RESOLUTION


# =============================================================================
# Exceptions
# =============================================================================
class ImageCropError(Exception):
    """Base class for errors raised by the crop tool."""


class UnsupportedImageError(ImageCropError):
    """The input file is not an image type the editor accepts."""


class RenderError(ImageCropError):
    """The output bitmap could not be produced."""


# =============================================================================
# Data classes
# =============================================================================
@dataclass(frozen=True)
class Size:
    width: float = 0.0
    height: float = 0.0

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class CropArea:
    """Crop rectangle in container coordinates."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains_point(self, point: Point) -> bool:
        """Edges count as inside."""
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom


@dataclass(frozen=True)
class ImageGeometry:
    """Position and size of the displayed (scaled) image inside the container."""
    position: Point = field(default_factory=Point)
    size: Size = field(default_factory=Size)

    @property
    def right(self) -> float:
        return self.position.x + self.size.width

    @property
    def bottom(self) -> float:
        return self.position.y + self.size.height

    def bounds(self) -> CropArea:
        """The crop that selects the whole image."""
        return CropArea(self.position.x, self.position.y, self.size.width, self.size.height)

    def contains(self, crop: CropArea, eps: float = 1e-6) -> bool:
        return (
            crop.x >= self.position.x - eps
            and crop.y >= self.position.y - eps
            and crop.right <= self.right + eps
            and crop.bottom <= self.bottom + eps
        )


class DragHandle(enum.Enum):
    MOVE = "move"
    TOP_LEFT = "topLeft"
    TOP_RIGHT = "topRight"
    BOTTOM_LEFT = "bottomLeft"
    BOTTOM_RIGHT = "bottomRight"

    @property
    def is_corner(self) -> bool:
        return self is not DragHandle.MOVE


@dataclass(frozen=True)
class DragSession:
    """Pointer-down snapshot; lives until the pointer is released."""
    start_point: Point
    start_crop: CropArea
    handle: DragHandle


class OutputMode(enum.Enum):
    ASPECT = MODE_ASPECT
    RESOLUTION = MODE_RESOLUTION


@dataclass
class OutputSpec:
    mode: OutputMode = OutputMode.ASPECT
    target_size: Size | None = None
    extend_canvas: bool = False
    background_color: str = DEFAULT_BACKGROUND
    rotation_degrees: float = 0.0


@dataclass
class ImageSource:
    """A decoded input image as handed over by ingestion."""
    image: Image.Image
    mime_type: str
    file_name: str

    @property
    def natural_size(self) -> Size:
        return Size(*self.image.size)


@dataclass
class RenderResult:
    data: bytes
    mime_type: str
    file_name: str
    width: int
    height: int


# =============================================================================
# Crop math utilities
# =============================================================================
def aspect_matches(width: float, height: float, ratio: float) -> bool:
    """True if ``width / height`` is within tolerance of *ratio*."""
    if height <= 0:
        return False
    return abs(width / height - ratio) <= ASPECT_TOLERANCE


def fit_aspect(crop: CropArea, ratio: float) -> CropArea:
    """Shrink the excess dimension of *crop* to match *ratio*, keeping its center.

    A rectangle that is too wide loses width, one that is too tall loses
    height; the other dimension is left alone.  Crops already within
    tolerance (and empty crops) are returned unchanged.
    """
    if crop.is_empty() or aspect_matches(crop.width, crop.height, ratio):
        return crop
    new_w, new_h = crop.width, crop.height
    if crop.width / crop.height > ratio:
        new_w = crop.height * ratio
    else:
        new_h = crop.width / ratio
    return CropArea(
        crop.x + (crop.width - new_w) / 2,
        crop.y + (crop.height - new_h) / 2,
        new_w,
        new_h,
    )
