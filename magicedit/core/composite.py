"""Blend a generator result back onto the base image through the mask."""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from numbers import Real

import numpy as np

from ..errors import EmptyMaskWarning
from .boundary import DEFAULT_TOLERANCE, OUTSIDE_THRESHOLD, BoundaryReport, check_boundary
from .raster import RasterBuffer, SelectionMask, ensure_same_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompositeResult:
    image: RasterBuffer
    report: BoundaryReport


def composite(base: RasterBuffer, fill: RasterBuffer, mask: SelectionMask) -> RasterBuffer:
    """Return ``base * (1 - w) + fill * w`` per channel, with ``w = mask / 255``.

    The blend is done in integers with half-up rounding, so ``w == 0`` yields
    ``base`` bit-for-bit and ``w == 1`` yields ``fill`` bit-for-bit. Nothing
    the fill contains outside the mask can reach the output.
    """

    ensure_same_size(base=base, fill=fill, mask=mask)
    if mask.is_empty():
        warnings.warn(
            EmptyMaskWarning("composite called with an empty mask; returning base unchanged"),
            stacklevel=2,
        )
        return RasterBuffer(base.width, base.height, base.data)

    weight = mask.array().astype(np.uint32)[..., None]
    blended = (
        base.array().astype(np.uint32) * (255 - weight)
        + fill.array().astype(np.uint32) * weight
        + 127
    ) // 255
    logger.debug("Composited %dx%d fill through mask", base.width, base.height)
    return RasterBuffer.from_array(blended.astype(np.uint8))


def composite_with_report(
    base: RasterBuffer,
    fill: RasterBuffer,
    mask: SelectionMask,
    tolerance: Real = DEFAULT_TOLERANCE,
    *,
    threshold: int = OUTSIDE_THRESHOLD,
) -> CompositeResult:
    """Composite and attach the boundary report for the same operands."""

    image = composite(base, fill, mask)
    report = check_boundary(base, fill, mask, tolerance, threshold=threshold)
    return CompositeResult(image=image, report=report)


__all__ = ["CompositeResult", "composite", "composite_with_report"]
