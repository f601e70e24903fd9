from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from io import BytesIO
from pathlib import Path
from typing import Optional, Protocol, Tuple

from PIL import Image

from core.buffer import PixelBuffer
from core.state import CropRect

log = logging.getLogger(__name__)

LOSSLESS_FORMATS = {"PNG", "BMP", "TIFF"}
QUALITY_FORMATS = {"JPEG", "WEBP"}
_FORMAT_ALIASES = {"JPG": "JPEG", "TIF": "TIFF"}

_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


class DecodeError(ValueError):
    """Raised when encoded bytes cannot be turned into an RGBA buffer."""


class RenderSurface(Protocol):
    def present(self, buffer: Optional[PixelBuffer], crop_rect: Optional[CropRect] = None) -> None: ...

    def hit_test_scale(self, display_w: float, display_h: float) -> Tuple[float, float]: ...


def _decode_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rasteredit-decode")
        return _executor


def normalize_format(fmt: str) -> str:
    f = str(fmt).strip().upper().lstrip(".")
    return _FORMAT_ALIASES.get(f, f)


def decode_image(data: bytes) -> PixelBuffer:
    try:
        with Image.open(BytesIO(data)) as im:
            # Convert to RGBA for consistent alpha work
            rgba = im.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"cannot decode image: {e}") from e
    buffer = PixelBuffer.from_pil(rgba)
    log.debug("Decoded %dx%d image", buffer.width, buffer.height)
    return buffer


def decode_image_async(data: bytes, executor: Optional[ThreadPoolExecutor] = None) -> "Future[PixelBuffer]":
    pool = executor if executor is not None else _decode_executor()
    return pool.submit(decode_image, bytes(data))


def load_image_file(path: str) -> PixelBuffer:
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise DecodeError(f"cannot read {path}: {e}") from e
    return decode_image(data)


def encode_image(buffer: PixelBuffer, fmt: str = "PNG", quality: Optional[int] = None) -> bytes:
    f = normalize_format(fmt)
    img = buffer.to_pil()
    params = {}
    if f == "JPEG":
        # JPG has no alpha, so flatten onto white.
        flat = Image.new("RGB", img.size, (255, 255, 255))
        flat.paste(img, mask=img.split()[3])
        img = flat
    if f in QUALITY_FORMATS and quality is not None:
        params["quality"] = max(1, min(100, int(quality)))

    out = BytesIO()
    img.save(out, format=f, **params)
    return out.getvalue()


def format_for_path(path: str, default: str = "PNG") -> str:
    suffix = Path(path).suffix
    return normalize_format(suffix) if suffix else default


def save_image(path: str, buffer: PixelBuffer, quality: Optional[int] = None) -> None:
    data = encode_image(buffer, format_for_path(path), quality=quality)
    Path(path).write_bytes(data)
    log.info("Saved %dx%d image to %s", buffer.width, buffer.height, path)
