"""Tests for the raster data model."""

from datetime import datetime

import numpy as np
import pytest
from shapely.geometry import LineString

from urban_thermal.core.exceptions import GridMismatchError
from urban_thermal.core.raster import Raster, RasterTimeSeries, Region, check_same_grid

from conftest import CRS, make_raster


class TestRaster:

    def test_two_dimensional_input_becomes_single_band(self):
        raster = make_raster(np.ones((3, 4)))
        assert raster.shape == (1, 3, 4)
        assert raster.band_names == ('LST',)

    def test_non_finite_samples_are_masked(self):
        values = np.array([[1.0, np.nan], [np.inf, 4.0]])
        raster = make_raster(values)
        assert raster.valid_mask[0].tolist() == [[True, False], [False, True]]
        assert raster.valid_count == 2

    def test_default_band_names(self):
        raster = Raster(np.zeros((2, 2, 2)), make_raster(np.zeros((2, 2))).transform, CRS)
        assert raster.band_names == ('band_1', 'band_2')

    def test_band_name_count_must_match(self):
        with pytest.raises(ValueError):
            make_raster(np.zeros((2, 2, 2)), band_names=('only_one',))

    def test_select_and_rename(self):
        raster = make_raster(np.stack([np.ones((2, 2)), 2 * np.ones((2, 2))]),
                             band_names=('Red', 'NIR'))
        nir = raster.select('NIR')
        assert nir.band_names == ('NIR',)
        assert float(nir.array.mean()) == 2.0
        assert nir.rename('X').band_names == ('X',)

    def test_unknown_band_raises_key_error(self):
        with pytest.raises(KeyError):
            make_raster(np.ones((2, 2))).band('NDVI')

    def test_input_array_is_copied(self):
        values = np.ones((2, 2))
        raster = make_raster(values)
        values[0, 0] = 99.0
        assert raster.array[0, 0, 0] == 1.0

    def test_joint_validity_across_bands(self):
        red = np.ones((2, 2))
        nir = np.ones((2, 2))
        valid = np.ones((2, 2, 2), dtype=bool)
        valid[0, 0, 0] = False
        valid[1, 1, 1] = False
        raster = make_raster(np.stack([red, nir]), band_names=('Red', 'NIR'), valid=valid)
        assert raster.joint_valid_mask().tolist() == [[False, True], [True, False]]

    def test_scale_and_bounds(self):
        raster = make_raster(np.zeros((3, 3)), scale=1000.0)
        assert raster.scale == pytest.approx(1000.0)
        left, bottom, right, top = raster.bounds
        assert (right - left, top - bottom) == (3000.0, 3000.0)


class TestGridChecks:

    def test_same_grid_passes(self):
        check_same_grid(make_raster(np.zeros((2, 2))), make_raster(np.ones((2, 2))))

    def test_shape_mismatch_raises(self):
        with pytest.raises(GridMismatchError):
            check_same_grid(make_raster(np.zeros((2, 2))), make_raster(np.zeros((3, 3))))

    def test_scale_mismatch_raises(self):
        with pytest.raises(GridMismatchError):
            check_same_grid(make_raster(np.zeros((2, 2)), scale=1000.0),
                            make_raster(np.zeros((2, 2)), scale=500.0))

    def test_grid_mismatch_is_a_value_error(self):
        assert issubclass(GridMismatchError, ValueError)


class TestRegion:

    def test_rejects_non_polygon(self):
        with pytest.raises(ValueError):
            Region(LineString([(0, 0), (1, 1)]), CRS)

    def test_geometry_in_same_crs_is_unchanged(self):
        region = Region.from_bounds(0, 0, 10, 10, CRS)
        assert region.geometry_in(CRS).equals(region.geometry)

    def test_geometry_in_other_crs_is_reprojected(self):
        region = Region.from_bounds(500000, 3000000, 501000, 3001000, CRS)
        left, bottom, right, top = region.bounds_in('EPSG:4326')
        assert 74.0 < left < right < 76.0
        assert 26.0 < bottom < top < 28.0


class TestRasterTimeSeries:

    def _series(self):
        return RasterTimeSeries.from_pairs([
            ('2010-05-01', make_raster(np.full((2, 2), 3.0))),
            ('2010-03-01', make_raster(np.full((2, 2), 1.0))),
            ('2010-06-01', make_raster(np.full((2, 2), 4.0))),
        ])

    def test_observations_are_time_ordered(self):
        assert self._series().timestamps == (
            datetime(2010, 3, 1), datetime(2010, 5, 1), datetime(2010, 6, 1)
        )

    def test_filter_date_is_half_open(self):
        subset = self._series().filter_date('2010-03-01', '2010-06-01')
        assert subset.timestamps == (datetime(2010, 3, 1), datetime(2010, 5, 1))

    def test_empty_filter_keeps_grid_and_bands(self):
        series = self._series()
        empty = series.filter_date('2011-01-01', '2012-01-01')
        assert len(empty) == 0
        assert empty.grid.same_grid(series.grid)
        assert empty.band_names == ('LST',)

    def test_empty_series_needs_schema(self):
        with pytest.raises(ValueError):
            RasterTimeSeries(())

    def test_mixed_grids_raise(self):
        with pytest.raises(GridMismatchError):
            RasterTimeSeries.from_pairs([
                ('2010-03-01', make_raster(np.zeros((2, 2)))),
                ('2010-04-01', make_raster(np.zeros((3, 3)))),
            ])

    def test_map_on_empty_series_uses_declared_bands(self):
        empty = self._series().filter_date('2020-01-01', '2021-01-01')
        mapped = empty.map(lambda r: r.rename('X'), band_names=['X'])
        assert mapped.band_names == ('X',)

    def test_merge_interleaves_by_time(self):
        a = RasterTimeSeries.from_pairs([('2010-03-01', make_raster(np.zeros((2, 2))))])
        b = RasterTimeSeries.from_pairs([('2010-02-01', make_raster(np.ones((2, 2))))])
        merged = a.merge(b)
        assert merged.timestamps == (datetime(2010, 2, 1), datetime(2010, 3, 1))
