"""Tests for region-level reductions."""

import numpy as np
import pytest

from urban_thermal.core.exceptions import GridMismatchError
from urban_thermal.core.region_statistics import (
    LinearFit, linear_fit, mean, pearson_correlation, region_summary, sample_pairs
)

from conftest import make_raster, region_for

X_VALUES = np.array([[0.1, 0.2, 0.3], [0.4, 0.5, 0.6], [0.7, 0.8, 0.9]])


def _x(valid=None):
    return make_raster(X_VALUES, band_names=('NDVI',), valid=valid)


class TestMean:

    def test_mean_of_valid_pixels(self):
        raster = make_raster(np.array([[1.0, 2.0], [3.0, 100.0]]),
                             valid=np.array([[True, True], [True, False]]))
        assert mean(raster, region_for(raster), 1000) == pytest.approx(2.0)

    def test_fully_masked_region_is_no_data(self):
        raster = make_raster(np.ones((2, 2)), valid=np.zeros((2, 2), dtype=bool))
        assert mean(raster, region_for(raster), 1000) is None

    def test_mean_is_restricted_to_region(self):
        raster = make_raster(np.array([[1.0, 50.0], [50.0, 50.0]]))
        top_left = region_for(make_raster(np.zeros((1, 1))))
        assert mean(raster, top_left, 1000) == pytest.approx(1.0)

    def test_geographic_raster_with_metre_scale(self):
        raster = make_raster(np.full((5, 5), 30.0), scale=0.009, origin=(77.0, 28.7),
                             crs='EPSG:4326')
        assert mean(raster, region_for(raster), 1000) == pytest.approx(30.0)

    def test_coarser_metre_scale_averages_pixels(self):
        raster = make_raster(np.array([[1.0, 3.0], [5.0, 7.0]]), scale=500.0)
        assert mean(raster, region_for(raster), 1000) == pytest.approx(4.0)

    def test_multi_band_input_rejected(self):
        raster = make_raster(np.ones((2, 2, 2)), band_names=('a', 'b'))
        with pytest.raises(ValueError):
            mean(raster, None, 1000)


class TestPearsonCorrelation:

    def test_self_correlation_is_one(self):
        x = _x()
        assert pearson_correlation(x, x, region_for(x), 1000) == pytest.approx(1.0)

    def test_perfect_anticorrelation(self):
        x = _x()
        y = make_raster(40.0 - 10.0 * X_VALUES)
        assert pearson_correlation(x, y, region_for(x), 1000) == pytest.approx(-1.0)

    def test_only_jointly_valid_pixels_are_used(self):
        valid = np.ones((3, 3), dtype=bool)
        valid[0, 0] = False
        x = _x(valid)
        # Pixel (0, 0) would break the linear relation if it were used
        y_values = 2.0 * X_VALUES
        y_values[0, 0] = 100.0
        y = make_raster(y_values)
        assert pearson_correlation(x, y, region_for(x), 1000) == pytest.approx(1.0)

    def test_fewer_than_two_pixels_is_no_data(self):
        valid = np.zeros((3, 3), dtype=bool)
        valid[1, 1] = True
        x = _x(valid)
        assert pearson_correlation(x, x, region_for(x), 1000) is None

    def test_constant_band_is_no_data(self):
        x = _x()
        constant = make_raster(np.full((3, 3), 5.0))
        assert pearson_correlation(x, constant, region_for(x), 1000) is None

    def test_grid_mismatch_raises(self):
        x = _x()
        other = make_raster(np.ones((3, 3)), scale=500.0)
        with pytest.raises(GridMismatchError):
            pearson_correlation(x, other, region_for(x), 1000)


class TestLinearFit:

    def test_recovers_slope_and_intercept(self):
        x = _x()
        y = make_raster(3.0 * X_VALUES + 7.0)
        fit = linear_fit(x, y, region_for(x), 1000)
        assert isinstance(fit, LinearFit)
        assert fit.slope == pytest.approx(3.0)
        assert fit.intercept == pytest.approx(7.0)
        assert fit.r_squared == pytest.approx(1.0)
        assert fit.n_pixels == 9

    def test_zero_variance_x_is_no_data(self):
        x = make_raster(np.full((3, 3), 0.4))
        y = make_raster(X_VALUES)
        assert linear_fit(x, y, region_for(x), 1000) is None

    def test_single_pixel_is_no_data(self):
        valid = np.zeros((3, 3), dtype=bool)
        valid[2, 2] = True
        x = _x(valid)
        assert linear_fit(x, make_raster(X_VALUES), region_for(x), 1000) is None


class TestSamplePairs:

    def test_returns_all_pixels_when_fewer_than_requested(self):
        x = _x()
        y = make_raster(X_VALUES * 2)
        samples = sample_pairs(x, y, region_for(x), 1000, num_pixels=500, seed=1)
        assert list(samples.columns) == ['NDVI', 'LST']
        assert len(samples) == 9

    def test_subsample_size_and_reproducibility(self):
        x = _x()
        y = make_raster(X_VALUES * 2)
        first = sample_pairs(x, y, region_for(x), 1000, num_pixels=4, seed=42)
        second = sample_pairs(x, y, region_for(x), 1000, num_pixels=4, seed=42)
        assert len(first) == 4
        assert first.equals(second)
        assert np.allclose(first['LST'], 2 * first['NDVI'])


def test_region_summary():
    raster = make_raster(np.array([[1.0, 3.0]]), valid=np.array([[True, True]]))
    summary = region_summary(raster, region_for(raster), 1000)['LST']
    assert summary['count'] == 2
    assert summary['mean'] == pytest.approx(2.0)
    assert (summary['min'], summary['max']) == (1.0, 3.0)
