from __future__ import annotations
import logging
from pathlib import Path
from typing import Callable, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QAction, QKeySequence, QIcon
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QFileDialog, QVBoxLayout, QHBoxLayout, QLabel,
    QSpinBox, QSlider, QPushButton, QMessageBox, QDockWidget, QGroupBox, QScrollArea
)

from core.engine import EditorEngine
from ui.canvas_widget import CanvasWidget

log = logging.getLogger(__name__)

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.webp *.tif *.tiff)"
EXPORT_FILTER = "PNG (*.png);;JPG (*.jpg *.jpeg);;WEBP (*.webp);;TIFF (*.tif *.tiff)"


def _percent_label(v: int) -> str:
    return f"{round(100 + v / 2)}%"


class MainWindow(QMainWindow):
    # Decode futures resolve on a worker thread; the signal hops back to the GUI thread.
    _dispatch = Signal(object)

    def __init__(self, engine: Optional[EditorEngine] = None, logo_path: Optional[Path] = None):
        super().__init__()
        if logo_path is not None and logo_path.exists():
            self.setWindowIcon(QIcon(str(logo_path)))
        self.setWindowTitle("RasterEdit")

        self.engine = engine or EditorEngine()
        self._act_undo: Optional[QAction] = None
        self._act_redo: Optional[QAction] = None

        # Central
        self.canvas = CanvasWidget(
            on_pointer_down=self.engine.pointer_down,
            on_pointer_move=self.engine.pointer_move,
            on_pointer_up=self.engine.pointer_up,
            cursor_for=self._cursor_for,
        )

        central = QWidget()
        lay = QVBoxLayout()
        lay.addWidget(self.canvas)
        central.setLayout(lay)
        self.setCentralWidget(central)

        self._build_menu()
        self._build_controls_dock()

        self._dispatch.connect(self._run_dispatched)
        self.engine.add_listener(self._on_engine_changed)

        self.setAcceptDrops(True)
        self.resize(1200, 800)
        self._sync_ui_from_state()

    # ---------------------------
    # Menu / Actions
    # ---------------------------
    def _build_menu(self) -> None:
        open_act = QAction("Open…", self)
        open_act.setShortcut(QKeySequence.StandardKey.Open)
        open_act.triggered.connect(self.open_file)

        export_act = QAction("Export As…", self)
        export_act.setShortcut(QKeySequence.StandardKey.SaveAs)
        export_act.triggered.connect(self.export_as)

        self._act_undo = QAction("Undo", self)
        self._act_undo.setShortcut(QKeySequence.StandardKey.Undo)
        self._act_undo.triggered.connect(self._undo)

        self._act_redo = QAction("Redo", self)
        self._act_redo.setShortcuts([QKeySequence("Ctrl+Y"), QKeySequence("Ctrl+Shift+Z")])
        self._act_redo.triggered.connect(self._redo)

        quit_act = QAction("Quit", self)
        quit_act.setShortcut(QKeySequence.StandardKey.Quit)
        quit_act.triggered.connect(self.close)

        mfile = self.menuBar().addMenu("File")
        mfile.addAction(open_act)
        mfile.addAction(export_act)
        mfile.addSeparator()
        mfile.addAction(quit_act)

        medit = self.menuBar().addMenu("Edit")
        medit.addAction(self._act_undo)
        medit.addAction(self._act_redo)

    def keyPressEvent(self, e) -> None:
        if self.engine.crop.is_active:
            if e.key() in (Qt.Key_Return, Qt.Key_Enter):
                self._apply_crop()
                e.accept()
                return
            if e.key() == Qt.Key_Escape:
                self.engine.cancel_crop()
                e.accept()
                return
        super().keyPressEvent(e)

    # ---------------------------
    # Controls dock
    # ---------------------------
    def _build_controls_dock(self) -> None:
        dock = QDockWidget("Controls", self)
        dock.setAllowedAreas(Qt.LeftDockWidgetArea | Qt.RightDockWidgetArea)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        panel = QWidget()
        v = QVBoxLayout(panel)

        g_adj, gl_adj = self._make_group("Adjust")
        self.grayscale_btn = QPushButton("Grayscale")
        self.grayscale_btn.clicked.connect(self._toggle_grayscale)
        gl_adj.addWidget(self.grayscale_btn)
        self.brightness_slider, self.brightness_value = self._add_filter_slider(
            gl_adj, "Brightness", self.engine.set_brightness
        )
        self.contrast_slider, self.contrast_value = self._add_filter_slider(
            gl_adj, "Contrast", self.engine.set_contrast
        )
        v.addWidget(g_adj)

        g_tx, gl_tx = self._make_group("Transform")
        tf_row = QHBoxLayout()
        self.rot_l_btn = QPushButton("Rotate -90")
        self.rot_l_btn.clicked.connect(lambda: self.engine.rotate90("left"))
        tf_row.addWidget(self.rot_l_btn)
        self.rot_r_btn = QPushButton("Rotate +90")
        self.rot_r_btn.clicked.connect(lambda: self.engine.rotate90("right"))
        tf_row.addWidget(self.rot_r_btn)
        gl_tx.addLayout(tf_row)
        flip_row = QHBoxLayout()
        self.flip_h_btn = QPushButton("Flip H")
        self.flip_h_btn.clicked.connect(lambda: self.engine.flip("horizontal"))
        flip_row.addWidget(self.flip_h_btn)
        self.flip_v_btn = QPushButton("Flip V")
        self.flip_v_btn.clicked.connect(lambda: self.engine.flip("vertical"))
        flip_row.addWidget(self.flip_v_btn)
        gl_tx.addLayout(flip_row)
        size_row = QHBoxLayout()
        size_row.addWidget(QLabel("W"))
        self.resize_w = QSpinBox()
        self.resize_w.setRange(1, 1)
        size_row.addWidget(self.resize_w)
        size_row.addWidget(QLabel("H"))
        self.resize_h = QSpinBox()
        self.resize_h.setRange(1, 1)
        size_row.addWidget(self.resize_h)
        self.apply_size_btn = QPushButton("Resize")
        self.apply_size_btn.clicked.connect(self._apply_resize)
        size_row.addWidget(self.apply_size_btn)
        gl_tx.addLayout(size_row)
        v.addWidget(g_tx)

        g_crop, gl_crop = self._make_group("Crop")
        crop_row = QHBoxLayout()
        self.crop_btn = QPushButton("Crop")
        self.crop_btn.clicked.connect(self.engine.enter_crop)
        crop_row.addWidget(self.crop_btn)
        self.apply_crop_btn = QPushButton("Apply Crop")
        self.apply_crop_btn.clicked.connect(self._apply_crop)
        crop_row.addWidget(self.apply_crop_btn)
        self.cancel_crop_btn = QPushButton("Cancel")
        self.cancel_crop_btn.clicked.connect(self.engine.cancel_crop)
        crop_row.addWidget(self.cancel_crop_btn)
        gl_crop.addLayout(crop_row)
        v.addWidget(g_crop)

        v.addStretch(1)
        scroll.setWidget(panel)
        dock.setWidget(scroll)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    def _make_group(self, title: str) -> tuple[QGroupBox, QVBoxLayout]:
        box = QGroupBox(title)
        layout = QVBoxLayout(box)
        return box, layout

    def _add_filter_slider(self, layout: QVBoxLayout, label: str, setter) -> tuple[QSlider, QLabel]:
        row = QHBoxLayout()
        row.addWidget(QLabel(label))
        slider = QSlider(Qt.Horizontal)
        slider.setRange(-255, 255)
        slider.setValue(0)
        value = QLabel(_percent_label(0))

        def _on_value(v: int) -> None:
            value.setText(_percent_label(v))
            setter(v)
            # Key and wheel steps change the value without a drag.
            if not slider.isSliderDown():
                self._commit_filters()

        slider.valueChanged.connect(_on_value)
        # Dragging previews live; the release commits one history step.
        slider.sliderReleased.connect(self._commit_filters)
        row.addWidget(slider, 1)
        row.addWidget(value)
        layout.addLayout(row)
        return slider, value

    # ---------------------------
    # File IO
    # ---------------------------
    def open_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", "", IMAGE_FILTER)
        if not path:
            return
        self.load_path(path)

    def load_path(self, path: str) -> None:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            QMessageBox.critical(self, "Open failed", str(e))
            return
        self.engine.load_async(
            data,
            dispatch=self._dispatch.emit,
            on_error=lambda e: self._on_load_failed(path, e),
        )

    def _run_dispatched(self, fn: Callable[[], None]) -> None:
        fn()

    def _on_load_failed(self, path: str, err: Exception) -> None:
        QMessageBox.critical(self, "Open failed", f"{path}\n{err}")

    def export_as(self) -> None:
        if self.engine.display is None:
            QMessageBox.information(self, "Nothing to export", "Load an image first.")
            return
        path, _ = QFileDialog.getSaveFileName(self, "Export As", "edited-image.png", EXPORT_FILTER)
        if not path:
            return
        try:
            self.engine.save(path)
        except (OSError, ValueError) as e:
            log.exception("Export to %s failed", path)
            QMessageBox.critical(self, "Export failed", str(e))

    # ---------------------------
    # Drag & drop support
    # ---------------------------
    def dragEnterEvent(self, e) -> None:
        if e.mimeData().hasUrls():
            e.acceptProposedAction()

    def dropEvent(self, e) -> None:
        urls = e.mimeData().urls()
        if not urls:
            return
        path = urls[0].toLocalFile()
        if path:
            self.load_path(path)

    # ---------------------------
    # Edits
    # ---------------------------
    def _toggle_grayscale(self) -> None:
        self.engine.toggle_grayscale()

    def _commit_filters(self) -> None:
        self.engine.commit_filters()
        self._update_undo_redo_actions()

    def _apply_resize(self) -> None:
        self.engine.resize_image(self.resize_w.value(), self.resize_h.value())

    def _apply_crop(self) -> None:
        self.engine.apply_crop()

    def _undo(self) -> None:
        self.engine.undo()

    def _redo(self) -> None:
        self.engine.redo()

    def _cursor_for(self, x: float, y: float) -> str:
        if not self.engine.crop.is_active:
            return "default"
        return self.engine.crop.cursor_for(x, y)

    # ---------------------------
    # Sync
    # ---------------------------
    def _on_engine_changed(self, engine: EditorEngine) -> None:
        self.canvas.present(engine.display, engine.crop_rect)
        self._sync_ui_from_state()

    def _update_undo_redo_actions(self) -> None:
        if self._act_undo is not None:
            self._act_undo.setEnabled(self.engine.can_undo())
        if self._act_redo is not None:
            self._act_redo.setEnabled(self.engine.can_redo())

    def _sync_ui_from_state(self) -> None:
        has_image = self.engine.has_image
        settings = self.engine.settings
        for slider, label, v in (
            (self.brightness_slider, self.brightness_value, settings.brightness),
            (self.contrast_slider, self.contrast_value, settings.contrast),
        ):
            slider.blockSignals(True)
            slider.setValue(int(v))
            slider.blockSignals(False)
            label.setText(_percent_label(int(v)))
            slider.setEnabled(has_image)

        w, h = self.engine.size
        for spin, value in ((self.resize_w, w), (self.resize_h, h)):
            spin.blockSignals(True)
            # Shrink to 1px or grow to 2x
            spin.setRange(1, max(1, value * 2))
            spin.setValue(max(1, value))
            spin.blockSignals(False)
            spin.setEnabled(has_image)

        for btn in (
            self.grayscale_btn, self.rot_l_btn, self.rot_r_btn,
            self.flip_h_btn, self.flip_v_btn, self.apply_size_btn, self.crop_btn,
        ):
            btn.setEnabled(has_image)
        self.apply_crop_btn.setEnabled(self.engine.crop.is_active)
        self.cancel_crop_btn.setEnabled(self.engine.crop.is_active)
        self._update_undo_redo_actions()
        self.statusBar().showMessage(f"{w} x {h}" if has_image else "No image")
