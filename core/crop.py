from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from core.state import CropRect, Edge

DEFAULT_EDGE_TOLERANCE = 8.0
DEFAULT_MIN_CROP_SIZE = 20.0


class CropPhase(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    DRAGGING = "dragging"


def hit_test_edge(rect: CropRect, x: float, y: float, tolerance: float = DEFAULT_EDGE_TOLERANCE) -> Optional[Edge]:
    # Left/Right are tested first, so corners resolve to a vertical edge.
    cx, cy, w, h = rect.as_tuple()
    in_rows = cy <= y <= cy + h
    in_cols = cx <= x <= cx + w
    if abs(x - cx) <= tolerance and in_rows:
        return Edge.LEFT
    if abs(x - (cx + w)) <= tolerance and in_rows:
        return Edge.RIGHT
    if abs(y - cy) <= tolerance and in_cols:
        return Edge.TOP
    if abs(y - (cy + h)) <= tolerance and in_cols:
        return Edge.BOTTOM
    return None


def drag_edge(rect: CropRect, edge: Edge, dx: float, dy: float) -> CropRect:
    out = rect.copy()
    if edge is Edge.LEFT:
        out.x += dx
        out.width -= dx
    elif edge is Edge.RIGHT:
        out.width += dx
    elif edge is Edge.TOP:
        out.y += dy
        out.height -= dy
    elif edge is Edge.BOTTOM:
        out.height += dy
    return out


def clamp_crop_rect(
    rect: CropRect,
    canvas_w: float,
    canvas_h: float,
    min_size: float = DEFAULT_MIN_CROP_SIZE,
) -> CropRect:
    # A canvas narrower than min_size caps the minimum at the canvas extent.
    min_w = min(float(min_size), float(canvas_w))
    min_h = min(float(min_size), float(canvas_h))

    width = max(min_w, rect.width)
    height = max(min_h, rect.height)
    x = max(0.0, min(rect.x, canvas_w - min_w))
    y = max(0.0, min(rect.y, canvas_h - min_h))
    width = min(canvas_w - x, width)
    height = min(canvas_h - y, height)
    return CropRect(x, y, width, height)


class CropInteraction:
    """
    Crop rectangle interaction: Idle -> Active -> Dragging -> Active -> Idle.

    Coordinates are source-buffer pixels. Callers send events; the rectangle
    is only ever changed through them.
    """

    def __init__(
        self,
        edge_tolerance: float = DEFAULT_EDGE_TOLERANCE,
        min_size: float = DEFAULT_MIN_CROP_SIZE,
    ):
        self.edge_tolerance = float(edge_tolerance)
        self.min_size = float(min_size)
        self._phase = CropPhase.IDLE
        self._rect: Optional[CropRect] = None
        self._edge: Optional[Edge] = None
        self._last_xy: Tuple[float, float] = (0.0, 0.0)
        self._canvas: Tuple[int, int] = (0, 0)

    @property
    def phase(self) -> CropPhase:
        return self._phase

    @property
    def is_active(self) -> bool:
        return self._phase is not CropPhase.IDLE

    @property
    def is_dragging(self) -> bool:
        return self._phase is CropPhase.DRAGGING

    @property
    def rect(self) -> Optional[CropRect]:
        return None if self._rect is None else self._rect.copy()

    @property
    def edge(self) -> Optional[Edge]:
        return self._edge

    def enter(self, canvas_w: int, canvas_h: int) -> CropRect:
        self._canvas = (int(canvas_w), int(canvas_h))
        self._rect = CropRect(0.0, 0.0, float(canvas_w), float(canvas_h))
        self._edge = None
        self._phase = CropPhase.ACTIVE
        return self._rect.copy()

    def edge_at(self, x: float, y: float) -> Optional[Edge]:
        if self._rect is None:
            return None
        return hit_test_edge(self._rect, x, y, self.edge_tolerance)

    def cursor_for(self, x: float, y: float) -> str:
        edge = self._edge if self.is_dragging else self.edge_at(x, y)
        if edge is None:
            return "default"
        return "ew-resize" if edge.is_vertical else "ns-resize"

    def pointer_down(self, x: float, y: float) -> Optional[Edge]:
        if self._phase is not CropPhase.ACTIVE:
            return None
        edge = self.edge_at(x, y)
        if edge is None:
            return None
        self._edge = edge
        self._last_xy = (float(x), float(y))
        self._phase = CropPhase.DRAGGING
        return edge

    def pointer_move(self, x: float, y: float) -> bool:
        if self._phase is not CropPhase.DRAGGING or self._rect is None or self._edge is None:
            return False
        dx = float(x) - self._last_xy[0]
        dy = float(y) - self._last_xy[1]
        self._last_xy = (float(x), float(y))
        moved = drag_edge(self._rect, self._edge, dx, dy)
        self._rect = clamp_crop_rect(moved, self._canvas[0], self._canvas[1], self.min_size)
        return True

    def pointer_up(self) -> None:
        if self._phase is CropPhase.DRAGGING:
            self._phase = CropPhase.ACTIVE
        self._edge = None

    def cancel(self) -> None:
        self._phase = CropPhase.IDLE
        self._rect = None
        self._edge = None
