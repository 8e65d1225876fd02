"""
Viewport mapping between container space and source-pixel space.

The image is scaled to fit the container (letterboxed), multiplied by the
zoom factor and centered.  When that mapping changes, an existing crop is
carried over proportionally so it keeps selecting the same part of the image.
This module is Qt-free.
"""

import logging

from image_crop_tool.models import CropArea, ImageGeometry, Point, Size

logger = logging.getLogger(__name__)


def compute_geometry(container: Size, natural: Size, zoom: float) -> ImageGeometry:
    """Calculate size and position of the displayed image inside *container*."""
    if natural.width <= 0 or natural.height <= 0:
        return ImageGeometry()
    scale = min(container.width / natural.width, container.height / natural.height) * zoom
    disp_w = natural.width * scale
    disp_h = natural.height * scale
    return ImageGeometry(
        Point((container.width - disp_w) / 2, (container.height - disp_h) / 2),
        Size(disp_w, disp_h),
    )


def rescale_crop(crop: CropArea, old: ImageGeometry, new: ImageGeometry) -> CropArea:
    """Carry *crop* from the *old* image geometry over to the *new* one.

    Offsets from the image origin and the crop size are both multiplied by
    the per-axis growth of the displayed image, which preserves the crop's
    relative placement rather than its absolute container position.  If the
    old geometry has no size yet there is nothing to scale from and the
    crop is returned as is.
    """
    if old.size.width <= 0 or old.size.height <= 0:
        return crop
    ratio_x = new.size.width / old.size.width
    ratio_y = new.size.height / old.size.height
    if ratio_x == 1 and ratio_y == 1 and old.position == new.position:
        return crop
    logger.debug("Rescaling crop by %.4f x %.4f", ratio_x, ratio_y)
    return CropArea(
        new.position.x + (crop.x - old.position.x) * ratio_x,
        new.position.y + (crop.y - old.position.y) * ratio_y,
        crop.width * ratio_x,
        crop.height * ratio_y,
    )


def source_scale(geometry: ImageGeometry, natural: Size) -> tuple[float, float]:
    """Return ``(scale_x, scale_y)`` converting displayed pixels to source pixels."""
    if geometry.size.is_empty():
        return 0.0, 0.0
    return natural.width / geometry.size.width, natural.height / geometry.size.height


def container_to_source(point: Point, geometry: ImageGeometry, natural: Size) -> Point:
    """Map a container point into source-pixel coordinates (may fall outside the image)."""
    sx, sy = source_scale(geometry, natural)
    return Point((point.x - geometry.position.x) * sx, (point.y - geometry.position.y) * sy)


def crop_source_size(crop: CropArea, geometry: ImageGeometry, natural: Size) -> Size:
    """Size of *crop* measured in source pixels."""
    sx, sy = source_scale(geometry, natural)
    return Size(crop.width * sx, crop.height * sy)
