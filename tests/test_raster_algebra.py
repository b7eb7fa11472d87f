"""Tests for raster algebra and mask propagation."""

import numpy as np
import pytest

from urban_thermal.core.exceptions import GridMismatchError
from urban_thermal.core.raster import Region
from urban_thermal.core.raster_algebra import (
    apply_mask, clip, combine_masks, divide, normalized_difference, scale_offset, subtract
)

from conftest import ORIGIN_X, ORIGIN_Y, make_raster


def test_scale_offset_converts_modis_encoding():
    raw = make_raster(np.array([[15000.0, 14000.0]]))
    celsius = scale_offset(raw, 0.02, -273.15)
    assert celsius.array.data[0] == pytest.approx(np.array([[26.85, 6.85]]))


def test_subtract_propagates_invalidity():
    a = make_raster(np.ones((2, 2)), valid=np.array([[True, False], [True, True]]))
    b = make_raster(np.ones((2, 2)), valid=np.array([[True, True], [False, True]]))
    result = subtract(a, b)
    assert result.valid_mask[0].tolist() == [[True, False], [False, True]]


def test_subtract_none_masks_everything():
    assert subtract(make_raster(np.ones((2, 2))), None).valid_count == 0


def test_divide_by_zero_pixel_is_masked():
    a = make_raster(np.array([[1.0, 2.0]]))
    b = make_raster(np.array([[0.0, 4.0]]))
    result = divide(a, b)
    assert result.valid_mask[0].tolist() == [[False, True]]
    assert result.array[0, 0, 1] == 0.5


def test_divide_by_scalar_zero_masks_everything():
    assert divide(make_raster(np.ones((2, 2))), 0).valid_count == 0


def test_divide_by_scalar():
    result = divide(make_raster(np.array([[3.0, 6.0]])), 3.0)
    assert result.array[0].tolist() == [[1.0, 2.0]]


def test_normalized_difference_of_identical_bands_is_zero():
    a = make_raster(np.array([[0.1, 0.5], [0.3, 0.9]]))
    nd = normalized_difference(a, a, 'NDVI')
    assert nd.band_names == ('NDVI',)
    assert np.all(nd.array[0] == 0.0)


def test_normalized_difference_zero_sum_is_masked():
    nir = make_raster(np.array([[0.5, 0.0]]))
    red = make_raster(np.array([[0.1, 0.0]]))
    nd = normalized_difference(nir, red)
    assert nd.valid_mask[0].tolist() == [[True, False]]
    assert nd.array[0, 0, 0] == pytest.approx(0.4 / 0.6)


def test_normalized_difference_requires_same_grid():
    with pytest.raises(GridMismatchError):
        normalized_difference(make_raster(np.ones((2, 2))), make_raster(np.ones((3, 3))))


def test_apply_mask_masks_every_band():
    raster = make_raster(np.ones((2, 2, 2)), band_names=('Red', 'NIR'))
    validity = make_raster(np.array([[1.0, 0.0], [1.0, 1.0]]), band_names=('valid',))
    masked = apply_mask(raster, validity)
    assert masked.valid_mask[:, 0, 1].tolist() == [False, False]
    assert masked.valid_count == 3


def test_combine_masks_is_logical_and():
    a = make_raster(np.array([[1.0, 1.0, 0.0]]), band_names=('valid',))
    b = make_raster(np.array([[1.0, 0.0, 1.0]]), band_names=('valid',))
    assert combine_masks(a, b).array[0].tolist() == [[1.0, 0.0, 0.0]]


def test_clip_masks_pixels_outside_region():
    raster = make_raster(np.arange(9.0).reshape(3, 3))
    # Left column only: x in [ORIGIN_X, ORIGIN_X + 1000)
    region = Region.from_bounds(ORIGIN_X, ORIGIN_Y - 3000, ORIGIN_X + 1000, ORIGIN_Y,
                                crs=raster.crs)
    clipped = clip(raster, region)
    assert clipped.valid_mask[0].tolist() == [[True, False, False]] * 3
    # Values themselves are untouched
    assert np.array_equal(clipped.array.data, raster.array.data)


def test_clip_without_region_is_identity():
    raster = make_raster(np.ones((2, 2)))
    assert clip(raster, None) is raster
