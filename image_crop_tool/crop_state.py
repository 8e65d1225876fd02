"""
Crop state: the authoritative crop rectangle and the view settings around it.

``CropState`` owns the crop (in container coordinates), the displayed image
geometry, zoom, rotation, the aspect-ratio lock and the extend-canvas flag.
Every mutation goes through one of its lifecycle methods so the crop stays
consistent with the geometry:

* loading an image selects the whole image;
* zoom and container changes rescale the crop proportionally;
* an aspect lock shrinks the crop's excess dimension around its center,
  both when the lock changes and whenever a new crop is stored;
* reset selects the whole image again at the default zoom and rotation.

Before an image is loaded every geometry operation is a no-op.  This module
is Qt-free.
"""

import logging

from image_crop_tool.config import (
    ASPECT_FALLBACK, RESIZE_DEBOUNCE_MS,
    ROTATION_DEFAULT, ROTATION_MAX, ROTATION_MIN,
    ZOOM_DEFAULT, ZOOM_MAX, ZOOM_MIN,
)
from image_crop_tool.models import CropArea, ImageGeometry, Size, fit_aspect
from image_crop_tool.viewport import compute_geometry, rescale_crop

logger = logging.getLogger(__name__)


def clamp_zoom(zoom: float) -> float:
    return max(ZOOM_MIN, min(float(zoom), ZOOM_MAX))


def clamp_rotation(degrees: float) -> float:
    return max(ROTATION_MIN, min(float(degrees), ROTATION_MAX))


class CropState:
    """Crop rectangle plus the zoom/rotation/aspect settings it depends on."""

    def __init__(self, container: Size = Size(), aspect_ratio: float | None = None):
        self._container = container
        self._natural = Size()
        self._geometry = ImageGeometry()
        self._crop = CropArea()
        self._zoom = ZOOM_DEFAULT
        self._rotation = ROTATION_DEFAULT
        self._aspect_ratio = self._valid_ratio(aspect_ratio)
        self._extend_canvas = False
        self._image_loaded = False
        self._listeners = []

    # --- Read access ---

    @property
    def crop(self) -> CropArea:
        return self._crop

    @property
    def geometry(self) -> ImageGeometry:
        return self._geometry

    @property
    def container_size(self) -> Size:
        return self._container

    @property
    def natural_size(self) -> Size:
        return self._natural

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def rotation(self) -> float:
        return self._rotation

    @property
    def aspect_ratio(self) -> float | None:
        return self._aspect_ratio

    @property
    def extend_canvas(self) -> bool:
        return self._extend_canvas

    @property
    def image_loaded(self) -> bool:
        return self._image_loaded

    # --- Change notification ---

    def subscribe(self, callback):
        """Register *callback* to be called after the crop or geometry changes."""
        self._listeners.append(callback)

    def unsubscribe(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self):
        for callback in list(self._listeners):
            callback()

    # --- Lifecycle ---

    def load_image(self, natural: Size, container: Size | None = None):
        """Show a new image and select all of it."""
        if container is not None:
            self._container = container
        self._natural = natural
        self._geometry = compute_geometry(self._container, natural, self._zoom)
        self._image_loaded = not natural.is_empty()
        self._crop = CropArea()
        logger.info(
            "Image loaded: %gx%g shown at %.1fx%.1f in %gx%g container",
            natural.width, natural.height,
            self._geometry.size.width, self._geometry.size.height,
            self._container.width, self._container.height,
        )
        self._store_crop(self._geometry.bounds())

    def set_zoom(self, zoom: float):
        self._zoom = clamp_zoom(zoom)
        self._update_geometry()

    def set_rotation(self, degrees: float):
        self._rotation = clamp_rotation(degrees)
        self._notify()

    def set_extend_canvas(self, extend: bool):
        self._extend_canvas = bool(extend)

    def set_aspect_ratio(self, ratio: float | None):
        """Lock the crop to *ratio* (width / height), or unlock it with ``None``."""
        self._aspect_ratio = self._valid_ratio(ratio)
        if self._image_loaded:
            self._store_crop(self._crop)

    def on_container_resized(self, size: Size):
        """The container now has *size*; refit the image and carry the crop along."""
        self._container = size
        self._update_geometry()

    def resize_handler(self, scheduler):
        """Return a debounced ``on_container_resized`` for a stream of resize signals."""
        return scheduler.debounce(self.on_container_resized, RESIZE_DEBOUNCE_MS)

    def set_crop(self, crop: CropArea):
        """Replace the crop rectangle (e.g. with a drag candidate)."""
        if not self._image_loaded:
            return
        self._store_crop(crop)

    def reset(self):
        """Select the whole image and restore default zoom and rotation."""
        if not self._image_loaded:
            return
        self._zoom = ZOOM_DEFAULT
        self._rotation = ROTATION_DEFAULT
        self._geometry = compute_geometry(self._container, self._natural, self._zoom)
        self._store_crop(self._geometry.bounds())

    # --- Internals ---

    @staticmethod
    def _valid_ratio(ratio: float | None) -> float | None:
        if ratio is None:
            return None
        if ratio <= 0:
            logger.warning("Invalid aspect ratio %r, using %g", ratio, ASPECT_FALLBACK)
            return ASPECT_FALLBACK
        return float(ratio)

    def _update_geometry(self):
        if not self._image_loaded:
            return
        old = self._geometry
        self._geometry = compute_geometry(self._container, self._natural, self._zoom)
        logger.debug(
            "Geometry: pos=(%.1f, %.1f) size=%.1fx%.1f zoom=%.2f",
            self._geometry.position.x, self._geometry.position.y,
            self._geometry.size.width, self._geometry.size.height, self._zoom,
        )
        if old.size.is_empty():
            # Nothing to carry over from a zero-size geometry
            self._store_crop(self._geometry.bounds())
            return
        self._store_crop(rescale_crop(self._crop, old, self._geometry))

    def _store_crop(self, crop: CropArea):
        if self._aspect_ratio is not None:
            crop = fit_aspect(crop, self._aspect_ratio)
        self._crop = crop
        self._notify()
