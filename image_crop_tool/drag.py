"""
Pointer-driven crop editing.

``DragController`` is a two-state machine (idle / dragging).  Pointer-down
records a ``DragSession`` holding the start point and a snapshot of the crop;
each pointer-move derives a new candidate from that snapshot (never from the
live crop, so rapid updates cannot drift) and hands it to ``CropState``.
Moves are coalesced through the scheduler so a burst of events produces one
update per frame.

Resizing follows a fixed order of corrections::

    raw resize -> aspect -> minimum size -> image bounds -> aspect again

The final aspect pass only runs after the bounds clamp and does not re-check
the minimum size, so extreme drags against the image edge can end up smaller
than the minimum.

This module is Qt-free.
"""

import logging

from image_crop_tool.config import ASPECT_TOLERANCE, HANDLE_SIZE, MIN_CROP_SIZE
from image_crop_tool.models import CropArea, DragHandle, DragSession, ImageGeometry, Point

logger = logging.getLogger(__name__)

_LEFT_HANDLES = (DragHandle.TOP_LEFT, DragHandle.BOTTOM_LEFT)
_TOP_HANDLES = (DragHandle.TOP_LEFT, DragHandle.TOP_RIGHT)


# =============================================================================
# Candidate computation
# =============================================================================
def compute_candidate(
    session: DragSession,
    point: Point,
    geometry: ImageGeometry,
    aspect_ratio: float | None,
    extend_canvas: bool,
    min_size: float = MIN_CROP_SIZE,
) -> CropArea:
    """Return the crop that dragging *session* to *point* produces."""
    delta = point - session.start_point
    if session.handle is DragHandle.MOVE:
        return _move(session.start_crop, delta, geometry, extend_canvas)
    return _resize(session.start_crop, session.handle, delta, geometry,
                   aspect_ratio, extend_canvas, min_size)


def _move(cs: CropArea, delta: Point, geometry: ImageGeometry, extend_canvas: bool) -> CropArea:
    new_x = cs.x + delta.x
    new_y = cs.y + delta.y
    if not extend_canvas:
        # Lower bound first so an oversized crop ends up right/bottom aligned
        new_x = max(new_x, geometry.position.x)
        new_y = max(new_y, geometry.position.y)
        new_x = min(new_x, geometry.right - cs.width)
        new_y = min(new_y, geometry.bottom - cs.height)
    return CropArea(new_x, new_y, cs.width, cs.height)


def _resize(
    cs: CropArea,
    handle: DragHandle,
    delta: Point,
    geometry: ImageGeometry,
    ar: float | None,
    extend_canvas: bool,
    min_size: float,
) -> CropArea:
    new_x, new_y, new_w, new_h = cs.x, cs.y, cs.width, cs.height
    dx, dy = delta.x, delta.y

    # Move the two edges that meet at the dragged corner
    if handle is DragHandle.TOP_LEFT:
        new_x, new_y = cs.x + dx, cs.y + dy
        new_w, new_h = cs.width - dx, cs.height - dy
    elif handle is DragHandle.TOP_RIGHT:
        new_y = cs.y + dy
        new_w, new_h = cs.width + dx, cs.height - dy
    elif handle is DragHandle.BOTTOM_LEFT:
        new_x = cs.x + dx
        new_w, new_h = cs.width - dx, cs.height + dy
    elif handle is DragHandle.BOTTOM_RIGHT:
        new_w, new_h = cs.width + dx, cs.height + dy

    if ar is not None:
        if handle in (DragHandle.TOP_LEFT, DragHandle.BOTTOM_RIGHT):
            new_h = new_w / ar
        else:
            new_w = new_h * ar
        # Keep the opposite corner where it was
        if handle in _LEFT_HANDLES:
            new_x = cs.right - new_w
        if handle in _TOP_HANDLES:
            new_y = cs.bottom - new_h

    if new_w < min_size:
        new_w = min_size
        if handle in _LEFT_HANDLES:
            new_x = cs.right - min_size
    if new_h < min_size:
        new_h = min_size
        if handle in _TOP_HANDLES:
            new_y = cs.bottom - min_size

    if not extend_canvas:
        pos = geometry.position
        if new_x < pos.x:
            new_x = pos.x
            new_w = cs.right - pos.x
        if new_y < pos.y:
            new_y = pos.y
            new_h = cs.bottom - pos.y
        if new_x + new_w > geometry.right:
            new_w = geometry.right - new_x
        if new_y + new_h > geometry.bottom:
            new_h = geometry.bottom - new_y

        if ar is not None and new_h > 0:
            constrained = new_w / new_h
            if abs(constrained - ar) > ASPECT_TOLERANCE:
                if constrained > ar:
                    new_w = new_h * ar
                else:
                    new_h = new_w / ar

    return CropArea(new_x, new_y, new_w, new_h)


# =============================================================================
# Drag controller
# =============================================================================
class DragController:
    """Turns pointer events into crop updates on a ``CropState``."""

    def __init__(self, state, scheduler, min_size: float = MIN_CROP_SIZE):
        self._state = state
        self._scheduler = scheduler
        self._min_size = min_size
        self._session: DragSession | None = None
        self._pending = None

    @property
    def is_dragging(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> DragSession | None:
        return self._session

    @property
    def handle(self) -> DragHandle | None:
        return self._session.handle if self._session else None

    def hit_test(self, point: Point, handle_size: float = HANDLE_SIZE) -> DragHandle | None:
        """Return the corner handle under *point*, ``MOVE`` inside the crop, else ``None``."""
        crop = self._state.crop
        if not self._state.image_loaded or crop.is_empty():
            return None
        corners = {
            DragHandle.TOP_LEFT: (crop.x, crop.y),
            DragHandle.TOP_RIGHT: (crop.right, crop.y),
            DragHandle.BOTTOM_LEFT: (crop.x, crop.bottom),
            DragHandle.BOTTOM_RIGHT: (crop.right, crop.bottom),
        }
        for handle, (cx, cy) in corners.items():
            if abs(point.x - cx) <= handle_size and abs(point.y - cy) <= handle_size:
                return handle
        if crop.contains_point(point):
            return DragHandle.MOVE
        return None

    # --- Pointer events ---

    def on_pointer_down(self, point: Point, handle: DragHandle | None = None) -> bool:
        """Start a drag; returns False if nothing was grabbed."""
        if not self._state.image_loaded:
            return False
        crop = self._state.crop
        if handle is None or handle is DragHandle.MOVE:
            if not crop.contains_point(point):
                return False
            handle = DragHandle.MOVE
        self._cancel_pending()
        self._session = DragSession(point, crop, handle)
        logger.debug("Drag start: %s at (%.1f, %.1f)", handle.value, point.x, point.y)
        return True

    def on_pointer_move(self, point: Point):
        if self._session is None:
            return
        self._cancel_pending()
        self._pending = self._scheduler.schedule_on_next_frame(lambda: self._apply(point))

    def on_pointer_up(self):
        if self._session is not None:
            logger.debug("Drag end: %s", self._session.handle.value)
        self._session = None
        self._cancel_pending()

    def on_pointer_leave(self):
        self.on_pointer_up()

    def teardown(self):
        self.on_pointer_up()

    # --- Internals ---

    def _cancel_pending(self):
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _apply(self, point: Point):
        self._pending = None
        session = self._session
        if session is None:
            return
        candidate = compute_candidate(
            session, point,
            self._state.geometry,
            self._state.aspect_ratio,
            self._state.extend_canvas,
            self._min_size,
        )
        self._state.set_crop(candidate)
