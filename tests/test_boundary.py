import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from magicedit.core.boundary import OUTSIDE_THRESHOLD, BoundaryReport, check_boundary
from magicedit.core.raster import RasterBuffer, SelectionMask
from magicedit.errors import DimensionMismatch, InvalidParameter


def _scene():
    rng = np.random.default_rng(21)
    base = rng.integers(20, 200, size=(6, 6, 4), dtype=np.uint8)
    mask = np.zeros((6, 6), dtype=np.uint8)
    mask[2:4, 2:4] = 255
    return base, mask


def test_single_far_pixel_outside_mask_is_counted():
    base, mask = _scene()
    fill = base.copy()
    fill[0, 5] = (255, 255, 255, 255)

    report = check_boundary(
        RasterBuffer.from_array(base),
        RasterBuffer.from_array(fill),
        SelectionMask.from_array(mask),
        tolerance=10,
    )

    assert report.violated
    assert report.violating_pixel_count == 1


def test_changes_inside_mask_are_ignored():
    base, mask = _scene()
    fill = base.copy()
    fill[2:4, 2:4] = 0

    report = check_boundary(
        RasterBuffer.from_array(base),
        RasterBuffer.from_array(fill),
        SelectionMask.from_array(mask),
        tolerance=0,
    )

    assert report == BoundaryReport(violated=False, max_delta=0, violating_pixel_count=0)


def test_lightly_feathered_pixels_are_not_outside():
    base, mask = _scene()
    mask[0, 0] = OUTSIDE_THRESHOLD
    mask[0, 1] = OUTSIDE_THRESHOLD - 1
    fill = base.copy()
    fill[0, 0] = (0, 0, 0, 0)
    fill[0, 1] = (0, 0, 0, 0)

    report = check_boundary(
        RasterBuffer.from_array(base),
        RasterBuffer.from_array(fill),
        SelectionMask.from_array(mask),
        tolerance=5,
    )

    assert report.violating_pixel_count == 1


def test_delta_equal_to_tolerance_is_allowed():
    base = RasterBuffer.solid(2, 1, (100, 100, 100, 255))
    fill = RasterBuffer(2, 1, bytes([105, 100, 100, 255, 106, 100, 100, 255]))

    report = check_boundary(base, fill, SelectionMask.filled(2, 1, 0), tolerance=5)

    assert report.violating_pixel_count == 1
    assert report.max_delta == 6


def test_alpha_changes_count_as_violations():
    base = RasterBuffer.solid(1, 1, (40, 40, 40, 255))
    fill = RasterBuffer.solid(1, 1, (40, 40, 40, 0))

    report = check_boundary(base, fill, SelectionMask.filled(1, 1, 0), tolerance=10)

    assert report.violated
    assert report.max_delta == 255


def test_fully_selected_mask_reports_nothing():
    base = RasterBuffer.solid(3, 3, (0, 0, 0, 255))
    fill = RasterBuffer.solid(3, 3, (255, 255, 255, 255))
    report = check_boundary(base, fill, SelectionMask.filled(3, 3, 255), tolerance=0)
    assert not report.violated
    assert report.max_delta == 0


@pytest.mark.parametrize("tolerance", [-1, 256, "5", True, None])
def test_rejects_bad_tolerance(tolerance):
    img = RasterBuffer.solid(1, 1, (0, 0, 0, 0))
    with pytest.raises(InvalidParameter):
        check_boundary(img, img, SelectionMask.filled(1, 1, 0), tolerance=tolerance)


def test_rejects_bad_threshold():
    img = RasterBuffer.solid(1, 1, (0, 0, 0, 0))
    with pytest.raises(InvalidParameter):
        check_boundary(img, img, SelectionMask.filled(1, 1, 0), threshold=300)


def test_dimension_mismatch_is_rejected():
    img = RasterBuffer.solid(2, 2, (0, 0, 0, 0))
    with pytest.raises(DimensionMismatch):
        check_boundary(img, RasterBuffer.solid(2, 3, (0, 0, 0, 0)), SelectionMask.filled(2, 2, 0))
