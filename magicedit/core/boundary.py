"""Measure how much a generator result changed outside the selection.

The report is advisory. :func:`magicedit.core.composite.composite` already
discards every change outside the mask, so a violation here only tells the
caller whether the generator behaved, never whether compositing may proceed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from numbers import Real

import numpy as np

from ..errors import InvalidParameter
from .raster import RasterBuffer, SelectionMask, ensure_same_size

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 5
# Mask values below this count as untouched rather than lightly feathered.
OUTSIDE_THRESHOLD = 5


@dataclass(frozen=True, slots=True)
class BoundaryReport:
    violated: bool
    max_delta: int
    violating_pixel_count: int


def _check_tolerance(tolerance: Real) -> float:
    if isinstance(tolerance, bool) or not isinstance(tolerance, Real):
        raise InvalidParameter(f"tolerance must be a number, got {tolerance!r}")
    if not 0 <= tolerance <= 255:
        raise InvalidParameter(f"tolerance must be within 0..255, got {tolerance}")
    return float(tolerance)


def _check_threshold(threshold: int) -> int:
    if isinstance(threshold, bool) or not isinstance(threshold, (int, np.integer)):
        raise InvalidParameter(f"threshold must be an integer, got {threshold!r}")
    if not 0 <= threshold <= 255:
        raise InvalidParameter(f"threshold must be within 0..255, got {threshold}")
    return int(threshold)


def check_boundary(
    base: RasterBuffer,
    fill: RasterBuffer,
    mask: SelectionMask,
    tolerance: Real = DEFAULT_TOLERANCE,
    *,
    threshold: int = OUTSIDE_THRESHOLD,
) -> BoundaryReport:
    """Compare ``base`` and ``fill`` wherever ``mask < threshold``.

    A pixel violates when its largest absolute R, G, B or A difference
    exceeds ``tolerance``.
    """

    tol = _check_tolerance(tolerance)
    threshold = _check_threshold(threshold)
    ensure_same_size(base=base, fill=fill, mask=mask)

    outside = mask.array() < threshold
    delta = np.abs(base.array().astype(np.int16) - fill.array().astype(np.int16)).max(axis=2)
    outside_delta = delta[outside]

    max_delta = int(outside_delta.max()) if outside_delta.size else 0
    count = int(np.count_nonzero(outside_delta > tol))
    logger.debug(
        "Boundary check: %d/%d outside pixels over tolerance %s (max delta %d)",
        count,
        outside_delta.size,
        tolerance,
        max_delta,
    )
    return BoundaryReport(violated=count > 0, max_delta=max_delta, violating_pixel_count=count)


__all__ = ["BoundaryReport", "DEFAULT_TOLERANCE", "OUTSIDE_THRESHOLD", "check_boundary"]
