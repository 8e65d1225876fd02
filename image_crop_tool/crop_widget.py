"""
Interactive crop-overlay widget and Qt helpers.

This module contains everything that touches both Qt **and** the crop core:
``pil_to_qpixmap``, the ``QTimer``-backed ``QtScheduler`` and the
``ImageCropWidget`` editor, which draws the image and overlay and forwards
pointer and resize events to ``DragController`` / ``CropState``.
"""

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF, QTimer, pyqtSignal
from PyQt6.QtGui import (
    QPainter, QPixmap, QColor, QPen, QBrush, QImage,
    QMouseEvent, QPaintEvent, QResizeEvent,
)

from image_crop_tool.config import FRAME_INTERVAL_MS, HANDLE_SIZE
from image_crop_tool.crop_state import CropState
from image_crop_tool.drag import DragController
from image_crop_tool.models import DragHandle, Point, Size
from image_crop_tool.scheduler import ScheduledCall, Scheduler
from image_crop_tool.viewport import crop_source_size


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    return QPixmap.fromImage(qimg.copy())


# =============================================================================
# Qt scheduler
# =============================================================================

class _TimerCall(ScheduledCall):
    def __init__(self, fn, timer: QTimer, on_finished):
        super().__init__(fn)
        self.timer = timer
        self._on_finished = on_finished

    def cancel(self):
        if self.done or self.cancelled:
            return
        super().cancel()
        self.timer.stop()
        self._finish()

    def run(self):
        if self.done or self.cancelled:
            return
        super().run()
        self._finish()

    def _finish(self):
        self.timer.deleteLater()
        self._on_finished(self)


class QtScheduler(Scheduler):
    """Scheduler backed by single-shot ``QTimer``s on the Qt event loop."""

    def __init__(self, parent=None, frame_interval_ms: int = FRAME_INTERVAL_MS):
        self._parent = parent
        self._frame_interval_ms = frame_interval_ms
        # Calls stay referenced until they run or are cancelled; callers may drop the handle
        self._live: set[_TimerCall] = set()

    def _timer(self) -> QTimer:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        return timer

    def schedule_on_next_frame(self, fn) -> ScheduledCall:
        call = _TimerCall(fn, self._timer(), self._live.discard)
        self._live.add(call)
        call.timer.timeout.connect(call.run)
        call.timer.start(self._frame_interval_ms)
        return call

    def debounce(self, fn, ms: int):
        timer = self._timer()
        latest: list[tuple] = []

        def fire():
            if latest:
                args, kwargs = latest.pop()
                fn(*args, **kwargs)

        timer.timeout.connect(fire)

        def trigger(*args, **kwargs):
            latest[:] = [(args, kwargs)]
            timer.start(ms)  # restarting drops the earlier signal

        return trigger


# =============================================================================
# Image Crop Widget: interactive crop overlay on image
# =============================================================================

class ImageCropWidget(QWidget):
    """Widget that displays an image with an interactive, resizable crop overlay."""

    crop_changed = pyqtSignal()

    def __init__(self, parent=None, scheduler: Scheduler | None = None):
        super().__init__(parent)
        self.setMinimumSize(400, 300)
        self.setMouseTracking(True)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._pixmap: QPixmap | None = None
        self._scheduler = scheduler or QtScheduler(self)
        self._state = CropState(Size(self.width(), self.height()))
        self._drag = DragController(self._state, self._scheduler)
        self._on_resized = self._state.resize_handler(self._scheduler)
        self._state.subscribe(self._on_state_changed)

    @property
    def state(self) -> CropState:
        return self._state

    @property
    def drag(self) -> DragController:
        return self._drag

    def set_image(self, pixmap: QPixmap, img_w: int, img_h: int):
        """Set the image to display and select all of it."""
        self._drag.teardown()
        self._pixmap = pixmap
        self._state.load_image(Size(img_w, img_h), Size(self.width(), self.height()))

    def has_image(self) -> bool:
        """Return True if an image is loaded and ready for crop operations."""
        return self._pixmap is not None and self._state.image_loaded

    def clear(self):
        self._drag.teardown()
        self._pixmap = None
        self._state.load_image(Size(), Size(self.width(), self.height()))

    def _on_state_changed(self):
        self.crop_changed.emit()
        self.update()

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        if not self.has_image():
            painter.setPen(QColor(128, 128, 128))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No image loaded")
            painter.end()
            return

        geo = self._state.geometry
        dest = QRectF(geo.position.x, geo.position.y, geo.size.width, geo.size.height)

        # Preview rotation about the image center
        painter.save()
        painter.translate(dest.center())
        painter.rotate(self._state.rotation)
        painter.translate(-dest.center())
        painter.drawPixmap(dest.toRect(), self._pixmap)
        painter.restore()

        crop = self._state.crop
        crop_rect = QRectF(crop.x, crop.y, crop.width, crop.height)
        full = QRectF(self.rect())
        dim = QColor(0, 0, 0, 80)

        # Dim everything outside the crop
        painter.fillRect(QRectF(full.left(), full.top(), full.width(), crop_rect.top() - full.top()), dim)
        painter.fillRect(QRectF(full.left(), crop_rect.bottom(), full.width(), full.bottom() - crop_rect.bottom()), dim)
        painter.fillRect(QRectF(full.left(), crop_rect.top(), crop_rect.left() - full.left(), crop_rect.height()), dim)
        painter.fillRect(QRectF(crop_rect.right(), crop_rect.top(), full.right() - crop_rect.right(), crop_rect.height()), dim)

        painter.setPen(QPen(QColor(255, 255, 255), 2))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(crop_rect)

        # Rule-of-thirds lines
        painter.setPen(QPen(QColor(255, 255, 255, 128), 1))
        for i in range(1, 3):
            x = crop_rect.left() + crop_rect.width() * i / 3
            painter.drawLine(QPointF(x, crop_rect.top()), QPointF(x, crop_rect.bottom()))
            y = crop_rect.top() + crop_rect.height() * i / 3
            painter.drawLine(QPointF(crop_rect.left(), y), QPointF(crop_rect.right(), y))

        # Corner handles
        painter.setPen(QPen(QColor(160, 160, 160), 1))
        painter.setBrush(QBrush(QColor(255, 255, 255)))
        r = HANDLE_SIZE / 2
        for corner in (crop_rect.topLeft(), crop_rect.topRight(), crop_rect.bottomLeft(), crop_rect.bottomRight()):
            painter.drawEllipse(corner, r, r)

        # Crop size in source pixels
        src = crop_source_size(crop, geo, self._state.natural_size)
        painter.setPen(QColor(255, 255, 255))
        painter.drawText(
            crop_rect.adjusted(0, -20, 0, 0).toRect(),
            Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignBottom,
            f"{round(src.width)} × {round(src.height)}",
        )
        painter.end()

    def resizeEvent(self, event: QResizeEvent):
        size = event.size()
        self._on_resized(Size(size.width(), size.height()))
        super().resizeEvent(event)

    # --- Mouse interaction ---

    @staticmethod
    def _point(event: QMouseEvent) -> Point:
        pos = event.position()
        return Point(pos.x(), pos.y())

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or not self.has_image():
            return
        point = self._point(event)
        handle = self._drag.hit_test(point)
        if handle is not None:
            self._drag.on_pointer_down(point, handle)

    def mouseMoveEvent(self, event: QMouseEvent):
        if not self.has_image():
            return
        point = self._point(event)
        if self._drag.is_dragging:
            self._drag.on_pointer_move(point)
            return

        handle = self._drag.hit_test(point)
        if handle in (DragHandle.TOP_LEFT, DragHandle.BOTTOM_RIGHT):
            self.setCursor(Qt.CursorShape.SizeFDiagCursor)
        elif handle in (DragHandle.TOP_RIGHT, DragHandle.BOTTOM_LEFT):
            self.setCursor(Qt.CursorShape.SizeBDiagCursor)
        elif handle is DragHandle.MOVE:
            self.setCursor(Qt.CursorShape.SizeAllCursor)
        else:
            self.setCursor(Qt.CursorShape.ArrowCursor)

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            self._drag.on_pointer_up()

    def leaveEvent(self, event):
        self._drag.on_pointer_leave()
        super().leaveEvent(event)

    def closeEvent(self, event):
        self._drag.teardown()
        super().closeEvent(event)
