from __future__ import annotations

import math
from typing import Tuple, Union

import numpy as np
from PIL import Image

from core.state import CropRect, FlipAxis


def _round_half_up(v: float) -> int:
    return int(math.floor(float(v) + 0.5))


def pil_to_np_rgba(img: Image.Image) -> np.ndarray:
    arr = np.array(img.convert("RGBA"), dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError("Expected RGBA image")
    return arr


def np_rgba_to_pil(arr: np.ndarray) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(arr))


class PixelBuffer:
    """
    RGBA pixel storage, row-major, 8 bits per channel.

    ``data`` is an HxWx4 uint8 array; ``tobytes()`` gives the flat
    width*height*4 byte layout. Geometric operations return new buffers.
    """

    __slots__ = ("data",)

    def __init__(self, data: np.ndarray):
        if data.dtype != np.uint8 or data.ndim != 3 or data.shape[2] != 4:
            raise ValueError("data must be HxWx4 uint8")
        if data.shape[0] < 1 or data.shape[1] < 1:
            raise ValueError("buffer must be at least 1x1")
        self.data = data

    # ---- construction ----
    @classmethod
    def blank(cls, width: int, height: int, rgba: Tuple[int, int, int, int] = (0, 0, 0, 0)) -> "PixelBuffer":
        arr = np.empty((int(height), int(width), 4), dtype=np.uint8)
        arr[...] = np.array(rgba, dtype=np.uint8)
        return cls(arr)

    @classmethod
    def from_bytes(cls, width: int, height: int, raw: Union[bytes, bytearray, memoryview]) -> "PixelBuffer":
        expected = int(width) * int(height) * 4
        if len(raw) != expected:
            raise ValueError(f"expected {expected} bytes for {width}x{height} RGBA, got {len(raw)}")
        arr = np.frombuffer(bytes(raw), dtype=np.uint8).reshape(int(height), int(width), 4)
        return cls(arr.copy())

    @classmethod
    def from_pil(cls, img: Image.Image) -> "PixelBuffer":
        return cls(pil_to_np_rgba(img))

    def to_pil(self) -> Image.Image:
        return np_rgba_to_pil(self.data)

    # ---- accessors ----
    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        r, g, b, a = (int(v) for v in self.data[int(y), int(x)])
        return (r, g, b, a)

    def tobytes(self) -> bytes:
        return self.data.tobytes()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.data.shape == other.data.shape and bool(np.array_equal(self.data, other.data))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"

    # ---- operations ----
    def clone(self) -> "PixelBuffer":
        return PixelBuffer(self.data.copy())

    def crop(self, rect: CropRect) -> "PixelBuffer":
        ix = max(0, _round_half_up(rect.x))
        iy = max(0, _round_half_up(rect.y))
        iw = max(1, _round_half_up(rect.width))
        ih = max(1, _round_half_up(rect.height))

        # Source pixels are addressed through the flat row-major index, so a
        # column past the right edge reads from the start of the next row.
        # Only indices past the end of the data read as transparent black.
        flat = self.data.reshape(-1, 4)
        rows = np.arange(iy, iy + ih, dtype=np.int64)[:, None]
        cols = np.arange(ix, ix + iw, dtype=np.int64)[None, :]
        index = rows * self.width + cols
        inside = index < flat.shape[0]

        out = np.zeros((ih, iw, 4), dtype=np.uint8)
        out[inside] = flat[index[inside]]
        return PixelBuffer(out)

    def rotate90(self, clockwise: bool) -> "PixelBuffer":
        # np.rot90 with k=-1 turns (x, y) into (h-1-y, x); k=1 into (y, w-1-x).
        k = -1 if clockwise else 1
        return PixelBuffer(np.ascontiguousarray(np.rot90(self.data, k=k)))

    def flip(self, axis: Union[FlipAxis, str]) -> "PixelBuffer":
        axis = FlipAxis.parse(axis)
        if axis is FlipAxis.HORIZONTAL:
            flipped = self.data[:, ::-1]
        else:
            flipped = self.data[::-1, :]
        return PixelBuffer(np.ascontiguousarray(flipped))

    def resample(self, new_width: float, new_height: float, high_quality: bool = True) -> "PixelBuffer":
        """Smooth resize; a non-finite or fractional size leaves the pixels as they are."""
        for v in (new_width, new_height):
            if not math.isfinite(float(v)) or float(v) != int(v):
                return self.clone()
        w = max(1, int(new_width))
        h = max(1, int(new_height))
        if (w, h) == self.size:
            return self.clone()

        resample = Image.Resampling.LANCZOS if high_quality else Image.Resampling.BILINEAR
        scaled = self.to_pil().resize((w, h), resample=resample)
        return PixelBuffer(pil_to_np_rgba(scaled))
