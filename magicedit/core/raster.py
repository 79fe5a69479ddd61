"""Raster value types shared by every pipeline stage.

``RasterBuffer`` holds RGBA8 pixels and ``SelectionMask`` holds a single
8-bit channel; both are immutable, row-major and unpadded. Conversions to and
from Pillow images, numpy arrays, PNG bytes and ``data:`` URLs live here too,
so the stages themselves only ever deal with plain buffers.
"""

from __future__ import annotations

import base64
import binascii
import io
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import DimensionMismatch, ImageDecodeError, InvalidParameter

PNG_DATA_URL_PREFIX = "data:image/png;base64,"


def _check_dims(width: int, height: int) -> Tuple[int, int]:
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidParameter(f"{name} must be an integer, got {value!r}")
    if width < 0 or height < 0:
        raise InvalidParameter(f"dimensions must be non-negative, got {width}x{height}")
    return int(width), int(height)


@dataclass(frozen=True, slots=True)
class RasterBuffer:
    """An RGBA8 image: ``len(data) == width * height * 4``."""

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        width, height = _check_dims(self.width, self.height)
        object.__setattr__(self, "width", width)
        object.__setattr__(self, "height", height)
        object.__setattr__(self, "data", bytes(self.data))
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise InvalidParameter(
                f"RGBA buffer of {self.width}x{self.height} needs {expected} bytes, got {len(self.data)}"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def array(self) -> np.ndarray:
        """Return a read-only ``(height, width, 4)`` uint8 view of the pixels."""

        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        offset = (y * self.width + x) * 4
        r, g, b, a = self.data[offset : offset + 4]
        return (r, g, b, a)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "RasterBuffer":
        values = np.asarray(array)
        if values.ndim != 3 or values.shape[2] != 4:
            raise InvalidParameter(f"expected an (h, w, 4) array, got shape {values.shape}")
        if values.dtype != np.uint8:
            raise InvalidParameter(f"expected uint8 pixels, got {values.dtype}")
        height, width = values.shape[:2]
        return cls(width, height, np.ascontiguousarray(values).tobytes())

    @classmethod
    def solid(cls, width: int, height: int, rgba: Sequence[int]) -> "RasterBuffer":
        _check_dims(width, height)
        colour = bytes(int(c) for c in rgba)
        if len(colour) != 4:
            raise InvalidParameter("solid colour must have four channels")
        return cls(width, height, colour * (width * height))

    @classmethod
    def from_image(cls, img: Image.Image) -> "RasterBuffer":
        rgba = img.convert("RGBA") if img.mode != "RGBA" else img
        return cls(rgba.width, rgba.height, rgba.tobytes())

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", self.size, self.data)


@dataclass(frozen=True, slots=True)
class SelectionMask:
    """Single-channel selection weights: 0 is outside, 255 is inside."""

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        width, height = _check_dims(self.width, self.height)
        object.__setattr__(self, "width", width)
        object.__setattr__(self, "height", height)
        object.__setattr__(self, "data", bytes(self.data))
        expected = self.width * self.height
        if len(self.data) != expected:
            raise InvalidParameter(
                f"mask of {self.width}x{self.height} needs {expected} bytes, got {len(self.data)}"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def array(self) -> np.ndarray:
        """Return a read-only ``(height, width)`` uint8 view of the weights."""

        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width)

    def value(self, x: int, y: int) -> int:
        return self.data[y * self.width + x]

    def is_empty(self) -> bool:
        return not self.array().any()

    @classmethod
    def from_array(cls, array: np.ndarray) -> "SelectionMask":
        values = np.asarray(array)
        if values.ndim != 2:
            raise InvalidParameter(f"expected an (h, w) array, got shape {values.shape}")
        if values.dtype != np.uint8:
            raise InvalidParameter(f"expected uint8 weights, got {values.dtype}")
        height, width = values.shape
        return cls(width, height, np.ascontiguousarray(values).tobytes())

    @classmethod
    def filled(cls, width: int, height: int, value: int = 0) -> "SelectionMask":
        _check_dims(width, height)
        if not 0 <= int(value) <= 255:
            raise InvalidParameter(f"mask value must be 0..255, got {value}")
        return cls(width, height, bytes([int(value)]) * (width * height))

    @classmethod
    def from_image(cls, img: Image.Image) -> "SelectionMask":
        """Build a mask from ``img``.

        Painted stroke layers carry the selection in their alpha channel, so
        images with transparency use it; anything else is read as luminance.
        """

        if img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info:
            channel = img.convert("RGBA").getchannel("A")
        else:
            channel = img.convert("L")
        return cls(channel.width, channel.height, channel.tobytes())

    def to_image(self) -> Image.Image:
        return Image.frombytes("L", self.size, self.data)


def ensure_same_size(**operands) -> Tuple[int, int]:
    """Raise :class:`DimensionMismatch` unless all ``operands`` share one size."""

    sizes = {name: (op.width, op.height) for name, op in operands.items()}
    distinct = set(sizes.values())
    if len(distinct) > 1:
        detail = ", ".join(f"{name}={w}x{h}" for name, (w, h) in sizes.items())
        raise DimensionMismatch(f"operands differ in size: {detail}")
    return next(iter(distinct))


def decode_image(payload: bytes) -> RasterBuffer:
    """Decode PNG (or any Pillow-readable) bytes into a :class:`RasterBuffer`."""

    try:
        with Image.open(io.BytesIO(payload)) as img:
            img.load()
            return RasterBuffer.from_image(img)
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageDecodeError(f"could not decode image: {exc}") from exc


def encode_png(buffer: RasterBuffer) -> bytes:
    """Return lossless PNG bytes for ``buffer``."""

    out = io.BytesIO()
    buffer.to_image().save(out, format="PNG")
    return out.getvalue()


def to_data_url(buffer: RasterBuffer) -> str:
    return PNG_DATA_URL_PREFIX + base64.b64encode(encode_png(buffer)).decode("ascii")


def from_data_url(url: str) -> RasterBuffer:
    """Decode a ``data:image/...;base64,`` URL or a bare base64 payload."""

    payload = url.strip()
    if payload.startswith("data:"):
        header, sep, payload = payload.partition(",")
        if not sep or not header.endswith(";base64"):
            raise ImageDecodeError("only base64 data URLs are supported")
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"invalid base64 payload: {exc}") from exc
    return decode_image(raw)


def resize_to_match(buffer: RasterBuffer, width: int, height: int) -> RasterBuffer:
    """Resample ``buffer`` to ``width`` x ``height`` with bilinear filtering.

    Used by callers to align a generator result with the base image before
    compositing; the pipeline stages never resample on their own.
    """

    _check_dims(width, height)
    if buffer.size == (width, height):
        return buffer
    resized = buffer.to_image().resize((width, height), Image.BILINEAR)
    return RasterBuffer.from_image(resized)


def with_alpha_from(buffer: RasterBuffer, source: RasterBuffer) -> RasterBuffer:
    """Return ``buffer`` with its alpha channel replaced by ``source``'s."""

    ensure_same_size(buffer=buffer, source=source)
    pixels = buffer.array().copy()
    pixels[..., 3] = source.array()[..., 3]
    return RasterBuffer.from_array(pixels)


__all__ = [
    "PNG_DATA_URL_PREFIX",
    "RasterBuffer",
    "SelectionMask",
    "decode_image",
    "encode_png",
    "ensure_same_size",
    "from_data_url",
    "resize_to_match",
    "to_data_url",
    "with_alpha_from",
]
