from __future__ import annotations

import logging
import math
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple, Union

from core.adjustments import apply_filters
from core.buffer import PixelBuffer
from core.config import EditorConfig
from core.crop import CropInteraction
from core.history import Checkpoint, HistoryStack
from core.io import decode_image, decode_image_async, encode_image, save_image
from core.state import CropRect, Edge, FilterSettings, FlipAxis, RotateDirection

log = logging.getLogger(__name__)

Listener = Callable[["EditorEngine"], None]
Dispatch = Callable[[Callable[[], None]], None]


class EditorEngine:
    """
    Owns the live editing state: source buffer, filter settings, derived
    display buffer, crop interaction and history.

    Every mutating call that cannot apply (no image, invalid size, empty
    history, no crop in progress) is a no-op returning ``False``.
    """

    def __init__(self, config: Optional[EditorConfig] = None):
        self.config = config or EditorConfig()
        self.history = HistoryStack(self.config.max_history)
        self.crop = CropInteraction(
            edge_tolerance=self.config.crop_edge_tolerance,
            min_size=self.config.crop_min_size,
        )
        self._source: Optional[PixelBuffer] = None
        self._display: Optional[PixelBuffer] = None
        self._settings = FilterSettings()
        # Settings as of the last checkpoint/restore; slider commits record these.
        self._committed_settings = FilterSettings()
        self._listeners: List[Listener] = []

    # ---------------------------
    # State accessors
    # ---------------------------
    @property
    def has_image(self) -> bool:
        return self._source is not None

    @property
    def source(self) -> Optional[PixelBuffer]:
        return self._source

    @property
    def display(self) -> Optional[PixelBuffer]:
        return self._display

    @property
    def settings(self) -> FilterSettings:
        return self._settings

    @property
    def size(self) -> Tuple[int, int]:
        if self._source is None:
            return (0, 0)
        return self._source.size

    @property
    def crop_rect(self) -> Optional[CropRect]:
        return self.crop.rect

    def can_undo(self) -> bool:
        return self.has_image and self.history.can_undo()

    def can_redo(self) -> bool:
        return self.has_image and self.history.can_redo()

    # ---------------------------
    # Render observers
    # ---------------------------
    def add_listener(self, callback: Listener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self)

    def _refresh(self) -> None:
        if self._source is None:
            self._display = None
        else:
            self._display = apply_filters(self._source, self._settings, out=self._display)
        self._notify()

    # ---------------------------
    # Loading
    # ---------------------------
    def load_buffer(self, buffer: PixelBuffer) -> None:
        self.history.reset()
        self._settings = FilterSettings()
        self._committed_settings = self._settings
        self.crop.cancel()
        self._source = buffer.clone()
        self._display = None
        self.history.checkpoint(self._source, self._settings)
        log.info("Loaded %dx%d image", buffer.width, buffer.height)
        self._refresh()

    def load_bytes(self, data: bytes) -> None:
        self.load_buffer(decode_image(data))

    def load_async(
        self,
        data: bytes,
        dispatch: Dispatch,
        on_error: Optional[Callable[[Exception], None]] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> "Future[PixelBuffer]":
        """
        Decode ``data`` off-thread; the engine is seeded through ``dispatch``.

        The decode future resolves on a worker thread, so nothing here touches
        engine state there. ``dispatch`` receives a zero-argument callable and
        must run it on the thread that owns the engine, for example through a
        queued Qt signal. A failed decode leaves the current image in place;
        ``on_error`` is dispatched the same way with the ``DecodeError``.
        """
        decoding = decode_image_async(data, executor=executor)

        def _on_done(f: "Future[PixelBuffer]") -> None:
            if f.cancelled():
                return
            err = f.exception()
            if err is not None:
                log.warning("Image load failed: %s", err)
                if on_error is not None:
                    dispatch(lambda: on_error(err))
                return
            buffer = f.result()
            dispatch(lambda: self.load_buffer(buffer))

        decoding.add_done_callback(_on_done)
        return decoding

    # ---------------------------
    # Filters
    # ---------------------------
    def set_filters(self, **changes) -> bool:
        if self._source is None:
            log.debug("set_filters ignored: no image loaded")
            return False
        for key in ("brightness", "contrast"):
            if key not in changes:
                continue
            try:
                value = float(changes[key])
            except (TypeError, ValueError):
                log.debug("set_filters ignored: non-numeric %s %r", key, changes[key])
                return False
            if not math.isfinite(value):
                log.debug("set_filters ignored: non-finite %s %r", key, changes[key])
                return False
        self._settings = self._settings.with_changes(**changes)
        self._refresh()
        return True

    def set_brightness(self, value: int) -> bool:
        return self.set_filters(brightness=value)

    def set_contrast(self, value: int) -> bool:
        return self.set_filters(contrast=value)

    def commit_filters(self) -> bool:
        """Record the pre-gesture settings once a slider is released."""
        if self._source is None:
            return False
        if self._settings == self._committed_settings:
            return False
        self.history.checkpoint(self._source, self._committed_settings)
        self._committed_settings = self._settings
        return True

    def toggle_grayscale(self) -> bool:
        if self._source is None:
            return False
        self._checkpoint()
        self._settings = self._settings.with_changes(grayscale=not self._settings.grayscale)
        self._committed_settings = self._settings
        self._refresh()
        return True

    # ---------------------------
    # History
    # ---------------------------
    def _checkpoint(self) -> None:
        self.history.checkpoint(self._source, self._settings)
        self._committed_settings = self._settings

    def _restore(self, checkpoint: Checkpoint) -> None:
        self._source = checkpoint.source.clone()
        self._settings = checkpoint.settings
        self._committed_settings = self._settings
        self.crop.cancel()
        self._refresh()

    def undo(self) -> bool:
        if self._source is None:
            return False
        checkpoint = self.history.undo(self._source, self._settings)
        if checkpoint is None:
            log.debug("undo ignored: nothing to undo")
            return False
        self._restore(checkpoint)
        return True

    def redo(self) -> bool:
        if self._source is None:
            return False
        checkpoint = self.history.redo(self._source, self._settings)
        if checkpoint is None:
            log.debug("redo ignored: nothing to redo")
            return False
        self._restore(checkpoint)
        return True

    # ---------------------------
    # Transforms
    # ---------------------------
    def _replace_source(self, buffer: PixelBuffer, what: str) -> None:
        self.crop.cancel()
        self._source = buffer
        log.debug("%s -> %dx%d", what, buffer.width, buffer.height)
        self._refresh()

    def rotate90(self, direction: Union[RotateDirection, str]) -> bool:
        if self._source is None:
            log.debug("rotate ignored: no image loaded")
            return False
        direction = RotateDirection.parse(direction)
        self._checkpoint()
        self._replace_source(self._source.rotate90(direction.clockwise), f"rotate {direction.value}")
        return True

    def flip(self, axis: Union[FlipAxis, str]) -> bool:
        if self._source is None:
            log.debug("flip ignored: no image loaded")
            return False
        axis = FlipAxis.parse(axis)
        self._checkpoint()
        self._replace_source(self._source.flip(axis), f"flip {axis.value}")
        return True

    def resize_image(self, width: float, height: float) -> bool:
        if self._source is None:
            log.debug("resize ignored: no image loaded")
            return False
        try:
            fw, fh = float(width), float(height)
        except (TypeError, ValueError):
            log.debug("resize ignored: non-numeric size %r x %r", width, height)
            return False
        if not (math.isfinite(fw) and math.isfinite(fh)):
            log.debug("resize ignored: non-finite size %r x %r", width, height)
            return False
        w, h = math.floor(fw), math.floor(fh)
        if w <= 0 or h <= 0:
            log.debug("resize ignored: non-positive size %d x %d", w, h)
            return False
        if (w, h) == self._source.size:
            return False

        self._checkpoint()
        resized = self._source.resample(w, h, high_quality=self.config.high_quality_resample)
        self._replace_source(resized, "resize")
        return True

    def apply_crop(self) -> bool:
        rect = self.crop.rect
        if self._source is None or not self.crop.is_active or rect is None:
            log.debug("crop ignored: no crop in progress")
            return False
        self._checkpoint()
        self._replace_source(self._source.crop(rect), "crop")
        return True

    commit_crop = apply_crop

    # ---------------------------
    # Crop interaction events
    # ---------------------------
    def enter_crop(self) -> bool:
        if self._source is None:
            return False
        self.crop.enter(self._source.width, self._source.height)
        self._notify()
        return True

    def pointer_down(self, x: float, y: float) -> Optional[Edge]:
        return self.crop.pointer_down(x, y)

    def pointer_move(self, x: float, y: float) -> bool:
        if not self.crop.pointer_move(x, y):
            return False
        self._notify()
        return True

    def pointer_up(self) -> None:
        self.crop.pointer_up()

    def cancel_crop(self) -> bool:
        if not self.crop.is_active:
            return False
        self.crop.cancel()
        self._notify()
        return True

    # ---------------------------
    # Export
    # ---------------------------
    def export(self, fmt: Optional[str] = None, quality: Optional[int] = None) -> Optional[bytes]:
        if self._display is None:
            return None
        return encode_image(
            self._display,
            fmt or self.config.export_format,
            quality=self.config.export_quality if quality is None else quality,
        )

    def save(self, path: str) -> bool:
        if self._display is None:
            return False
        save_image(path, self._display, quality=self.config.export_quality)
        return True
