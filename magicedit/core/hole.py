"""Punch a transparent hole into the base image where the mask selects."""

from __future__ import annotations

import logging

import numpy as np

from .raster import RasterBuffer, SelectionMask, ensure_same_size

logger = logging.getLogger(__name__)


def cut_hole(base: RasterBuffer, mask: SelectionMask) -> RasterBuffer:
    """Return ``base`` with alpha scaled by ``(255 - mask) / 255``.

    RGB is copied untouched. The reduction is multiplicative, so a feathered
    mask leaves an alpha gradient that mirrors the blend weights.
    """

    ensure_same_size(base=base, mask=mask)
    pixels = base.array().astype(np.uint32)
    keep = 255 - mask.array().astype(np.uint32)
    pixels[..., 3] = (pixels[..., 3] * keep + 127) // 255
    logger.debug("Cut hole into %dx%d image", base.width, base.height)
    return RasterBuffer.from_array(pixels.astype(np.uint8))


__all__ = ["cut_hole"]
