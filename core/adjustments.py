from __future__ import annotations

from typing import Optional

import numpy as np

from core.buffer import PixelBuffer
from core.state import FilterSettings


def contrast_factor(contrast: float) -> float:
    c = float(contrast)
    if c == 259.0:
        raise ValueError("contrast of 259 has no defined factor")
    return (259.0 * (c + 255.0)) / (255.0 * (259.0 - c))


def apply_adjustments_rgba(
    rgba: np.ndarray,
    grayscale: bool = False,
    brightness: float = 0.0,
    contrast: float = 0.0,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    if rgba.dtype != np.uint8 or rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError("rgba must be HxWx4 uint8")

    rgb = rgba[..., :3].astype(np.float64)

    # Grayscale (Rec. 601 luma)
    if grayscale:
        luma = rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114
        rgb = np.repeat(luma[..., None], 3, axis=2)

    # Brightness, unclamped until the end
    rgb += float(brightness)

    # Contrast around 128
    f = contrast_factor(contrast)
    if f != 1.0:
        rgb = f * (rgb - 128.0) + 128.0

    if out is None or out.shape != rgba.shape or out.dtype != np.uint8:
        out = np.empty_like(rgba)
    out[..., :3] = np.rint(np.clip(rgb, 0.0, 255.0))
    out[..., 3] = rgba[..., 3]
    return out


def apply_filters(
    source: PixelBuffer,
    settings: FilterSettings,
    out: Optional[PixelBuffer] = None,
) -> PixelBuffer:
    """
    Recompute the display buffer from ``source``.

    The result depends only on ``source`` and ``settings``; when ``out`` has
    the same shape it is overwritten and returned instead of allocating.
    """
    target = out.data if out is not None and out.data.shape == source.data.shape else None
    result = apply_adjustments_rgba(
        source.data,
        grayscale=settings.grayscale,
        brightness=settings.brightness,
        contrast=settings.contrast,
        out=target,
    )
    if target is not None and out is not None:
        return out
    return PixelBuffer(result)
