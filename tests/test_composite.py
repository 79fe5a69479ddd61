import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from magicedit.core.composite import composite, composite_with_report
from magicedit.core.feather import feather
from magicedit.core.hole import cut_hole
from magicedit.core.raster import RasterBuffer, SelectionMask, with_alpha_from
from magicedit.errors import DimensionMismatch, EmptyMaskWarning, InvalidParameter


def _random_image(rng, height=6, width=8) -> RasterBuffer:
    return RasterBuffer.from_array(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))


def _mixed_mask(rng, height=6, width=8) -> SelectionMask:
    values = rng.integers(0, 256, size=(height, width), dtype=np.uint8)
    values[values < 90] = 0
    values[values > 200] = 255
    return SelectionMask.from_array(values)


def test_unselected_pixels_are_bit_identical_to_base():
    rng = np.random.default_rng(1)
    base, fill, mask = _random_image(rng), _random_image(rng), _mixed_mask(rng)

    out = composite(base, fill, mask).array()

    outside = mask.array() == 0
    assert outside.any()
    assert (out[outside] == base.array()[outside]).all()


def test_fully_selected_pixels_take_the_fill():
    rng = np.random.default_rng(2)
    base, fill, mask = _random_image(rng), _random_image(rng), _mixed_mask(rng)

    out = composite(base, fill, mask).array()

    inside = mask.array() == 255
    assert inside.any()
    assert (out[inside] == fill.array()[inside]).all()


def test_partial_weight_interpolates_every_channel():
    base = RasterBuffer.solid(1, 1, (0, 0, 0, 0))
    fill = RasterBuffer.solid(1, 1, (255, 255, 255, 255))
    out = composite(base, fill, SelectionMask(1, 1, bytes([128])))
    assert out.pixel(0, 0) == (128, 128, 128, 128)


def test_fill_equal_to_base_is_a_no_op():
    rng = np.random.default_rng(4)
    base, mask = _random_image(rng), _mixed_mask(rng)
    assert composite(base, base, mask) == base


def test_repeat_composite_is_stable_where_weight_is_binary():
    rng = np.random.default_rng(6)
    base, fill, mask = _random_image(rng), _random_image(rng), _mixed_mask(rng)

    once = composite(base, fill, mask)
    twice = composite(once, fill, mask)

    binary = np.isin(mask.array(), (0, 255))
    assert (twice.array()[binary] == once.array()[binary]).all()
    assert composite(once, once, mask) == once


def test_empty_mask_warns_and_returns_base():
    rng = np.random.default_rng(8)
    base, fill = _random_image(rng), _random_image(rng)

    with pytest.warns(EmptyMaskWarning):
        out = composite(base, fill, SelectionMask.filled(8, 6, 0))

    assert out == base


def test_round_trip_through_hole_reproduces_base():
    rng = np.random.default_rng(9)
    base = _random_image(rng, 10, 10)
    mask = feather(_mixed_mask(rng, 10, 10), 2)

    hole = cut_hole(base, mask)
    restored = with_alpha_from(hole, base)

    assert composite(base, restored, mask) == base


def test_small_scene_with_feathered_corner():
    base = RasterBuffer.solid(4, 4, (0, 0, 0, 0))
    fill = RasterBuffer.solid(4, 4, (255, 255, 255, 255))
    values = np.zeros((4, 4), dtype=np.uint8)
    values[:2, :2] = 255
    mask = feather(SelectionMask.from_array(values), 1)

    out = composite(base, fill, mask)

    assert out.pixel(0, 0) == (255, 255, 255, 255)
    for xy in [(3, 3), (2, 3), (3, 2)]:
        assert out.pixel(*xy) == (0, 0, 0, 0)
    for xy in [(1, 0), (0, 1), (1, 1), (2, 1), (2, 2)]:
        r, g, b, a = out.pixel(*xy)
        assert 0 < r < 255
        assert r == g == b == a
    assert out.pixel(2, 2) == (28, 28, 28, 28)


def test_dimension_mismatch_is_rejected():
    base = RasterBuffer.solid(4, 4, (0, 0, 0, 255))
    with pytest.raises(DimensionMismatch):
        composite(base, RasterBuffer.solid(4, 5, (0, 0, 0, 255)), SelectionMask.filled(4, 4, 255))
    with pytest.raises(DimensionMismatch):
        composite(base, base, SelectionMask.filled(5, 4, 255))


def test_composite_with_report_attaches_boundary_report():
    base = RasterBuffer.solid(3, 3, (10, 10, 10, 255))
    fill = RasterBuffer.solid(3, 3, (250, 0, 0, 255))
    values = np.zeros((3, 3), dtype=np.uint8)
    values[1, 1] = 255

    result = composite_with_report(base, fill, SelectionMask.from_array(values), 10)

    assert result.image.pixel(1, 1) == (250, 0, 0, 255)
    assert result.image.pixel(0, 0) == (10, 10, 10, 255)
    assert result.report.violated
    assert result.report.violating_pixel_count == 8
    assert result.report.max_delta == 240


def test_composite_with_report_rejects_bad_tolerance():
    base = RasterBuffer.solid(2, 2, (0, 0, 0, 255))
    with pytest.raises(InvalidParameter):
        composite_with_report(base, base, SelectionMask.filled(2, 2, 255), 256)
