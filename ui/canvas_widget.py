from __future__ import annotations
from typing import Optional, Callable, Tuple

from PySide6.QtCore import Qt, QPointF, QRectF
from PySide6.QtGui import QPainter, QImage, QPixmap, QColor, QPen
from PySide6.QtWidgets import QWidget

from core.buffer import PixelBuffer
from core.state import CropRect

_CURSORS = {
    "ew-resize": Qt.SizeHorCursor,
    "ns-resize": Qt.SizeVerCursor,
    "default": Qt.ArrowCursor,
}


def buffer_to_qimage(buffer: PixelBuffer) -> QImage:
    data = buffer.tobytes()
    qimg = QImage(data, buffer.width, buffer.height, buffer.width * 4, QImage.Format_RGBA8888)
    # Important: keep a copy because Python-owned bytes may be freed
    return qimg.copy()


def fit_rect(buf_w: int, buf_h: int, area_w: float, area_h: float, margin: float = 12.0) -> QRectF:
    """Largest aspect-preserving rect for the buffer, centered, never upscaled."""
    if buf_w <= 0 or buf_h <= 0:
        return QRectF()
    avail_w = max(1.0, area_w - 2 * margin)
    avail_h = max(1.0, area_h - 2 * margin)
    scale = min(1.0, avail_w / buf_w, avail_h / buf_h)
    draw_w = buf_w * scale
    draw_h = buf_h * scale
    return QRectF((area_w - draw_w) * 0.5, (area_h - draw_h) * 0.5, draw_w, draw_h)


class CanvasWidget(QWidget):
    """
    Render surface for the editor.
    Shows the display buffer scaled to fit and the crop overlay, and reports
    left-button pointer events in buffer pixel coordinates:
      - on_pointer_down(x, y) / on_pointer_move(x, y) / on_pointer_up()
      - cursor_for(x, y) -> "ew-resize" | "ns-resize" | "default"
    """
    def __init__(
        self,
        on_pointer_down: Optional[Callable[[float, float], None]] = None,
        on_pointer_move: Optional[Callable[[float, float], None]] = None,
        on_pointer_up: Optional[Callable[[], None]] = None,
        cursor_for: Optional[Callable[[float, float], str]] = None,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMinimumSize(240, 220)

        self._preview: Optional[QImage] = None
        self._buf_size: Tuple[int, int] = (0, 0)
        self._crop_rect: Optional[CropRect] = None

        self._on_pointer_down = on_pointer_down
        self._on_pointer_move = on_pointer_move
        self._on_pointer_up = on_pointer_up
        self._cursor_for = cursor_for

        self.setAcceptDrops(True)

    # ---- render surface ----
    def present(self, buffer: Optional[PixelBuffer], crop_rect: Optional[CropRect] = None) -> None:
        if buffer is None:
            self._preview = None
            self._buf_size = (0, 0)
        else:
            self._preview = buffer_to_qimage(buffer)
            self._buf_size = buffer.size
        self._crop_rect = None if crop_rect is None else crop_rect.copy()
        self.update()

    def hit_test_scale(self, display_w: float, display_h: float) -> Tuple[float, float]:
        buf_w, buf_h = self._buf_size
        if display_w <= 0 or display_h <= 0:
            return (1.0, 1.0)
        return (buf_w / float(display_w), buf_h / float(display_h))

    def display_rect(self) -> QRectF:
        return fit_rect(self._buf_size[0], self._buf_size[1], self.width(), self.height())

    def widget_to_buffer_xy(self, pos: QPointF) -> Optional[Tuple[float, float]]:
        r = self.display_rect()
        if r.isEmpty():
            return None
        sx, sy = self.hit_test_scale(r.width(), r.height())
        return ((pos.x() - r.left()) * sx, (pos.y() - r.top()) * sy)

    # ---- painting ----
    def paintEvent(self, _) -> None:
        p = QPainter(self)
        p.setRenderHint(QPainter.Antialiasing, True)
        p.setRenderHint(QPainter.SmoothPixmapTransform, True)

        # Background
        p.fillRect(self.rect(), QColor(30, 30, 30))

        if self._preview is None:
            p.setPen(QPen(QColor(220, 220, 220)))
            p.drawText(self.rect(), Qt.AlignCenter, "Drop an image or File → Open…")
            return

        r = self.display_rect()
        self._draw_checkerboard(p, r, 16)
        p.drawPixmap(r, QPixmap.fromImage(self._preview), QRectF(self._preview.rect()))

        if self._crop_rect is not None:
            self._draw_crop_overlay(p, r)

    def _draw_checkerboard(self, p: QPainter, r: QRectF, cell: int) -> None:
        c1 = QColor(60, 60, 60)
        c2 = QColor(90, 90, 90)

        x0 = int(r.left())
        y0 = int(r.top())
        x1 = int(r.right())
        y1 = int(r.bottom())

        for y in range(y0, y1, cell):
            for x in range(x0, x1, cell):
                use_c1 = (((x - x0) // cell) + ((y - y0) // cell)) % 2 == 0
                p.fillRect(x, y, min(cell, x1 - x), min(cell, y1 - y), c1 if use_c1 else c2)

    def _draw_crop_overlay(self, p: QPainter, r: QRectF) -> None:
        buf_w, buf_h = self._buf_size
        if buf_w <= 0 or buf_h <= 0:
            return
        sx = r.width() / float(buf_w)
        sy = r.height() / float(buf_h)
        cx, cy, cw, ch = self._crop_rect.as_tuple()
        rx = r.left() + cx * sx
        ry = r.top() + cy * sy
        rw = cw * sx
        rh = ch * sy

        # Dim outside the crop
        shade = QColor(0, 0, 0, 128)
        p.fillRect(QRectF(r.left(), r.top(), r.width(), max(0.0, ry - r.top())), shade)
        p.fillRect(QRectF(r.left(), ry, max(0.0, rx - r.left()), rh), shade)
        p.fillRect(QRectF(rx + rw, ry, max(0.0, r.right() - (rx + rw)), rh), shade)
        p.fillRect(QRectF(r.left(), ry + rh, r.width(), max(0.0, r.bottom() - (ry + rh))), shade)

        border = QPen(QColor(255, 255, 255), 2)
        border.setDashPattern([4, 3])
        p.setPen(border)
        p.drawRect(QRectF(rx, ry, rw, rh))

    # ---- pointer events ----
    def mousePressEvent(self, e) -> None:
        if e.button() != Qt.LeftButton or self._on_pointer_down is None:
            return
        xy = self.widget_to_buffer_xy(e.position())
        if xy is not None:
            self._on_pointer_down(xy[0], xy[1])

    def mouseMoveEvent(self, e) -> None:
        xy = self.widget_to_buffer_xy(e.position())
        if xy is None:
            return
        if self._cursor_for is not None:
            self.setCursor(_CURSORS.get(self._cursor_for(xy[0], xy[1]), Qt.ArrowCursor))
        if (e.buttons() & Qt.LeftButton) and self._on_pointer_move is not None:
            self._on_pointer_move(xy[0], xy[1])

    def mouseReleaseEvent(self, e) -> None:
        if e.button() == Qt.LeftButton and self._on_pointer_up is not None:
            self._on_pointer_up()
