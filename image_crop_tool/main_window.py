"""
Main application window.

Hosts the crop editor and the controls around it: zoom and rotation,
aspect-ratio selection, output mode and resolution, canvas extension with
background color, and the crop / save actions.
"""

import logging
from pathlib import Path

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QFormLayout,
    QPushButton, QLabel, QFileDialog, QGroupBox, QMessageBox, QStatusBar,
    QToolBar, QCheckBox, QComboBox, QSlider, QLineEdit, QApplication,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence, QShortcut

from image_crop_tool.config import (
    ASPECT_CUSTOM, ASPECT_DEFAULT, ASPECT_FREE, ASPECT_PRESETS,
    DEFAULT_BACKGROUND, DEFAULT_TARGET_HEIGHT, DEFAULT_TARGET_WIDTH,
    IMAGE_EXTENSIONS, MODE_ASPECT, MODE_RESOLUTION,
    ROTATION_MAX, ROTATION_MIN, ZOOM_MAX, ZOOM_MIN, ZOOM_STEP,
)
from image_crop_tool.controls import aspect_key, build_output_spec, parse_aspect, parse_hex_color
from image_crop_tool.crop_widget import ImageCropWidget, pil_to_qpixmap
from image_crop_tool.image_io import load_image_source, save_result
from image_crop_tool.models import ImageCropError, ImageSource, RenderResult
from image_crop_tool.raster import render

logger = logging.getLogger(__name__)

# Zoom slider works in percent
_ZOOM_SCALE = 100


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Image Crop Tool")
        self.setMinimumSize(900, 500)
        self.resize(1280, 800)

        self._source: ImageSource | None = None
        self._result: RenderResult | None = None

        self._build_ui()
        self._apply_aspect()
        self._update_button_states()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QHBoxLayout(central)
        main_layout.setContentsMargins(4, 4, 4, 4)

        self._crop_widget = ImageCropWidget()
        self._crop_widget.crop_changed.connect(self._update_crop_info)
        main_layout.addWidget(self._crop_widget, stretch=1)
        main_layout.addWidget(self._build_right_panel())

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Open an image to begin.")

        QShortcut(QKeySequence(Qt.Key.Key_R), self, self._reset)
        QShortcut(QKeySequence(Qt.Key.Key_Return), self, self._crop)

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        act_open = QAction("📂 Open Image", self)
        act_open.triggered.connect(self._select_image)
        toolbar.addAction(act_open)

        self._act_save = QAction("💾 Save Result", self)
        self._act_save.triggered.connect(self._save_result)
        toolbar.addAction(self._act_save)

    def _build_right_panel(self) -> QWidget:
        panel = QWidget()
        panel.setFixedWidth(280)
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._build_view_group())
        layout.addWidget(self._build_aspect_group())
        layout.addWidget(self._build_output_group())

        self._btn_crop = QPushButton("✂ Crop Image")
        self._btn_crop.clicked.connect(self._crop)
        layout.addWidget(self._btn_crop)

        self._crop_info = QLabel("")
        self._crop_info.setWordWrap(True)
        layout.addWidget(self._crop_info)
        layout.addStretch()
        return panel

    def _build_view_group(self) -> QGroupBox:
        group = QGroupBox("View")
        form = QFormLayout(group)

        self._zoom_slider = QSlider(Qt.Orientation.Horizontal)
        self._zoom_slider.setRange(int(ZOOM_MIN * _ZOOM_SCALE), int(ZOOM_MAX * _ZOOM_SCALE))
        self._zoom_slider.setSingleStep(round(ZOOM_STEP * _ZOOM_SCALE))
        self._zoom_slider.setValue(_ZOOM_SCALE)
        self._zoom_slider.valueChanged.connect(self._on_zoom_changed)
        form.addRow("Zoom", self._zoom_slider)

        self._rotation_slider = QSlider(Qt.Orientation.Horizontal)
        self._rotation_slider.setRange(int(ROTATION_MIN), int(ROTATION_MAX))
        self._rotation_slider.valueChanged.connect(self._on_rotation_changed)
        form.addRow("Rotation", self._rotation_slider)

        self._btn_reset = QPushButton("↺ Reset")
        self._btn_reset.clicked.connect(self._reset)
        form.addRow(self._btn_reset)
        return group

    def _build_aspect_group(self) -> QGroupBox:
        group = QGroupBox("Aspect Ratio")
        form = QFormLayout(group)

        self._aspect_combo = QComboBox()
        self._aspect_combo.addItem("Free Form", ASPECT_FREE)
        for preset in ASPECT_PRESETS:
            key = aspect_key(preset["ratio_w"], preset["ratio_h"])
            self._aspect_combo.addItem(f"{preset['name']} ({preset['label']})", key)
        self._aspect_combo.addItem("Custom", ASPECT_CUSTOM)
        self._aspect_combo.setCurrentIndex(self._aspect_combo.findData(ASPECT_DEFAULT))
        self._aspect_combo.currentIndexChanged.connect(self._apply_aspect)
        form.addRow(self._aspect_combo)

        self._custom_w = QLineEdit("1")
        self._custom_h = QLineEdit("1")
        self._custom_w.textChanged.connect(self._on_custom_aspect_changed)
        self._custom_h.textChanged.connect(self._on_custom_aspect_changed)
        form.addRow("Width", self._custom_w)
        form.addRow("Height", self._custom_h)
        return group

    def _build_output_group(self) -> QGroupBox:
        group = QGroupBox("Output")
        form = QFormLayout(group)

        self._mode_combo = QComboBox()
        self._mode_combo.addItem("Aspect Ratio", MODE_ASPECT)
        self._mode_combo.addItem("Fixed Resolution", MODE_RESOLUTION)
        self._mode_combo.currentIndexChanged.connect(self._update_button_states)
        form.addRow("Mode", self._mode_combo)

        self._target_w = QLineEdit(str(DEFAULT_TARGET_WIDTH))
        self._target_h = QLineEdit(str(DEFAULT_TARGET_HEIGHT))
        form.addRow("Width (px)", self._target_w)
        form.addRow("Height (px)", self._target_h)

        self._extend_canvas = QCheckBox("Extend canvas if needed")
        self._extend_canvas.toggled.connect(self._on_extend_canvas_changed)
        form.addRow(self._extend_canvas)

        self._background = QLineEdit(DEFAULT_BACKGROUND)
        self._background.setEnabled(False)
        self._background.editingFinished.connect(self._on_background_edited)
        form.addRow("Background", self._background)
        return group

    # =========================================================================
    # Control handlers
    # =========================================================================

    def _on_zoom_changed(self, value: int):
        self._crop_widget.state.set_zoom(value / _ZOOM_SCALE)

    def _on_rotation_changed(self, value: int):
        self._crop_widget.state.set_rotation(value)

    def _apply_aspect(self, *args):
        selection = self._aspect_combo.currentData()
        is_custom = selection == ASPECT_CUSTOM
        self._custom_w.setEnabled(is_custom)
        self._custom_h.setEnabled(is_custom)
        ratio = parse_aspect(selection, self._custom_w.text(), self._custom_h.text())
        self._crop_widget.state.set_aspect_ratio(ratio)

    def _on_custom_aspect_changed(self, *args):
        if self._aspect_combo.currentData() == ASPECT_CUSTOM:
            self._apply_aspect()

    def _on_extend_canvas_changed(self, checked: bool):
        self._crop_widget.state.set_extend_canvas(checked)
        self._background.setEnabled(checked)

    def _on_background_edited(self):
        self._background.setText(parse_hex_color(self._background.text()))

    def _reset(self):
        state = self._crop_widget.state
        state.reset()
        # Sliders follow the state without feeding back into it
        for slider, value in ((self._zoom_slider, round(state.zoom * _ZOOM_SCALE)),
                              (self._rotation_slider, round(state.rotation))):
            slider.blockSignals(True)
            slider.setValue(value)
            slider.blockSignals(False)

    # =========================================================================
    # Image loading / cropping / saving
    # =========================================================================

    def _select_image(self):
        patterns = " ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS))
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", "", f"Images ({patterns})")
        if path:
            self.open_image(Path(path))

    def open_image(self, path: Path):
        try:
            source = load_image_source(path)
        except ImageCropError as exc:
            logger.warning("Could not open %s: %s", path, exc)
            QMessageBox.warning(self, "Unsupported Image", str(exc))
            return
        self._source = source
        self._result = None
        self._crop_widget.set_image(pil_to_qpixmap(source.image), source.image.width, source.image.height)
        self._apply_aspect()
        self._status.showMessage(f"{source.file_name} ({source.image.width} × {source.image.height})")
        self._update_button_states()

    def _crop(self):
        if self._source is None or not self._crop_widget.has_image():
            return
        state = self._crop_widget.state
        spec = build_output_spec(
            self._mode_combo.currentData(),
            self._target_w.text(),
            self._target_h.text(),
            self._extend_canvas.isChecked(),
            self._background.text(),
            state.rotation,
        )
        QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        try:
            self._result = render(self._source, state.crop, state.geometry, state.rotation, spec)
        except ImageCropError as exc:
            logger.exception("Crop failed")
            QMessageBox.critical(self, "Crop Failed", str(exc))
            return
        finally:
            QApplication.restoreOverrideCursor()
        self._status.showMessage(
            f"Cropped {self._result.width} × {self._result.height} ({self._result.mime_type})"
        )
        self._update_button_states()

    def _save_result(self):
        if self._result is None:
            return
        folder = QFileDialog.getExistingDirectory(self, "Save To Folder")
        if not folder:
            return
        try:
            out_path = save_result(self._result, Path(folder))
        except OSError as exc:
            QMessageBox.critical(self, "Save Failed", str(exc))
            return
        self._status.showMessage(f"Saved {out_path}")

    # =========================================================================
    # Status
    # =========================================================================

    def _update_crop_info(self):
        state = self._crop_widget.state
        if not state.image_loaded:
            self._crop_info.setText("")
            return
        crop = state.crop
        self._crop_info.setText(
            f"Crop: {crop.x:.0f}, {crop.y:.0f}  {crop.width:.0f} × {crop.height:.0f}\n"
            f"Zoom: {state.zoom:.1f}×  Rotation: {state.rotation:.0f}°"
        )

    def _update_button_states(self, *args):
        has_image = self._source is not None
        self._btn_crop.setEnabled(has_image)
        self._btn_reset.setEnabled(has_image)
        self._act_save.setEnabled(self._result is not None)
        resolution = self._mode_combo.currentData() == MODE_RESOLUTION
        self._target_w.setEnabled(resolution)
        self._target_h.setEnabled(resolution)

    def closeEvent(self, event):
        self._crop_widget.drag.teardown()
        super().closeEvent(event)
