"""Soft-edge a hand-painted selection with a separable box blur."""

from __future__ import annotations

import logging

import numpy as np

from ..errors import InvalidParameter
from .raster import SelectionMask

logger = logging.getLogger(__name__)

# Keeps the 255 * (2r+1)**2 window sums inside int64.
MAX_FEATHER_RADIUS = 1 << 20


def _check_radius(radius: int) -> int:
    if isinstance(radius, bool) or not isinstance(radius, (int, np.integer)):
        raise InvalidParameter(f"feather radius must be an integer, got {radius!r}")
    radius = int(radius)
    if radius < 0:
        raise InvalidParameter(f"feather radius cannot be negative, got {radius}")
    if radius > MAX_FEATHER_RADIUS:
        raise InvalidParameter(f"feather radius {radius} exceeds {MAX_FEATHER_RADIUS}")
    return radius


def _window_sum(values: np.ndarray, radius: int, axis: int) -> np.ndarray:
    """Sum ``values`` over a ``2*radius+1`` window along ``axis``.

    Samples outside the buffer take the nearest edge value. The replicated
    part of the window is added as ``count * edge`` so memory stays
    proportional to the input whatever the radius.
    """

    n = values.shape[axis]
    index = np.arange(n)
    start = np.maximum(index - radius, 0)
    end = np.minimum(index + radius, n - 1)

    zero_shape = list(values.shape)
    zero_shape[axis] = 1
    prefix = np.concatenate(
        [np.zeros(zero_shape, dtype=np.int64), np.cumsum(values, axis=axis, dtype=np.int64)],
        axis=axis,
    )
    inner = np.take(prefix, end + 1, axis=axis) - np.take(prefix, start, axis=axis)

    count_shape = [1] * values.ndim
    count_shape[axis] = n
    below = np.maximum(radius - index, 0).reshape(count_shape)
    above = np.maximum(index + radius - (n - 1), 0).reshape(count_shape)
    first = np.take(values, [0], axis=axis)
    last = np.take(values, [n - 1], axis=axis)
    return inner + below * first + above * last


def feather(mask: SelectionMask, radius: int) -> SelectionMask:
    """Return ``mask`` blurred by a ``(2*radius+1)``-wide box, horizontally then vertically.

    Both passes are accumulated as one exact integer sum per pixel and rounded
    half-up once. A window that touches any selected pixel never rounds down
    to 0, and a window that touches any unselected pixel never rounds up to
    255, so the nonzero region only grows with ``radius`` and 255 keeps
    meaning "fully inside". ``radius == 0`` copies the mask unchanged.
    """

    radius = _check_radius(radius)
    if radius == 0 or mask.width == 0 or mask.height == 0:
        return SelectionMask(mask.width, mask.height, mask.data)

    values = mask.array().astype(np.int64)
    sums = _window_sum(_window_sum(values, radius, axis=1), radius, axis=0)

    area = (2 * radius + 1) ** 2
    out = (2 * sums + area) // (2 * area)
    out = np.where((sums > 0) & (out == 0), 1, out)
    out = np.where((sums < 255 * area) & (out == 255), 254, out)

    logger.debug("Feathered %dx%d mask with radius %d", mask.width, mask.height, radius)
    return SelectionMask.from_array(out.astype(np.uint8))


__all__ = ["MAX_FEATHER_RADIUS", "feather"]
