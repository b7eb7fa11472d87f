"""Tests for the GeoTIFF imagery source and the study-area loader."""

import geopandas as gpd
import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin
from shapely.geometry import box

from urban_thermal.core.collaborators import (
    GeoTiffImagerySource, InMemoryImagerySource, VectorGeometrySource
)
from urban_thermal.core.exceptions import ImagerySourceError, SceneNotFoundError
from urban_thermal.core.raster import RasterTimeSeries, Region
from urban_thermal.core.temporal_compositing import composite

from conftest import CRS, ORIGIN_X, ORIGIN_Y, make_raster

MODIS_BANDS = ['LST_Day_1km', 'QC_Day']


def write_scene(path, data, band_names, nodata=None, origin=(ORIGIN_X, ORIGIN_Y)):
    profile = {
        'driver': 'GTiff', 'dtype': 'float32', 'count': len(band_names),
        'height': data.shape[1], 'width': data.shape[2], 'crs': CRS,
        'transform': from_origin(*origin, 1000.0, 1000.0), 'nodata': nodata,
    }
    with rasterio.open(path, 'w', **profile) as dst:
        dst.write(data.astype('float32'))
        for index, name in enumerate(band_names, start=1):
            dst.set_band_description(index, name)


@pytest.fixture
def imagery_dir(tmp_path):
    scenes = tmp_path / 'imagery' / 'modis'
    scenes.mkdir(parents=True)
    lst = np.full((1, 2, 2), 15000.0)
    lst[0, 0, 0] = 0.0
    qc = np.zeros((1, 2, 2))
    for day in ('20091219', '20100407', '20110407'):
        write_scene(scenes / f"MOD11A2_{day}.tif", np.concatenate([lst, qc]), MODIS_BANDS, nodata=0.0)
    write_scene(scenes / 'MOD11A2_undated.tif', np.concatenate([lst, qc]), MODIS_BANDS)
    return tmp_path / 'imagery'


class TestGeoTiffImagerySource:

    def test_fetch_by_year_range(self, imagery_dir):
        series = GeoTiffImagerySource(imagery_dir).fetch('MOD11A2', MODIS_BANDS, (2009, 2010))
        assert [t.strftime('%Y%m%d') for t in series.timestamps] == ['20091219', '20100407']
        assert series.band_names == tuple(MODIS_BANDS)

    def test_file_nodata_is_masked(self, imagery_dir):
        series = GeoTiffImagerySource(imagery_dir).fetch('MOD11A2', ['LST_Day_1km'], (2010, 2010))
        scene = next(iter(series)).raster
        assert scene.valid_mask[0].tolist() == [[False, True], [True, True]]

    def test_scenes_outside_region_are_skipped(self, imagery_dir):
        far_away = Region.from_bounds(0, 0, 1000, 1000, crs=CRS)
        with pytest.raises(ImagerySourceError):
            GeoTiffImagerySource(imagery_dir).fetch('MOD11A2', MODIS_BANDS, (2009, 2011), far_away)

    def test_missing_band_raises(self, imagery_dir):
        with pytest.raises(ImagerySourceError):
            GeoTiffImagerySource(imagery_dir).fetch('MOD11A2', ['LST_Night_1km'], (2010, 2010))

    def test_unknown_sensor_raises(self, imagery_dir):
        with pytest.raises(SceneNotFoundError):
            GeoTiffImagerySource(imagery_dir).fetch('LC08', ['SR_B4'], (2010, 2010))


def test_in_memory_source_selects_bands_and_years():
    scene = make_raster(np.ones((2, 2, 2)), band_names=('SR_B4', 'SR_B5'))
    source = InMemoryImagerySource({
        'LC08': RasterTimeSeries.from_pairs([('2013-05-01', scene), ('2014-05-01', scene)]),
    })
    series = source.fetch('LC08', ['SR_B5'], (2014, 2014))
    assert len(series) == 1
    assert series.band_names == ('SR_B5',)


def test_load_region_dissolves_features(tmp_path):
    path = tmp_path / 'study_area.gpkg'
    frame = gpd.GeoDataFrame(
        {'name': ['west', 'east']},
        geometry=[box(ORIGIN_X, ORIGIN_Y - 2000, ORIGIN_X + 1000, ORIGIN_Y),
                  box(ORIGIN_X + 1000, ORIGIN_Y - 2000, ORIGIN_X + 2000, ORIGIN_Y)],
        crs=CRS,
    )
    frame.to_file(path, driver='GPKG')

    region = VectorGeometrySource().load_region(path)

    assert region.crs.to_epsg() == 32643
    assert region.geometry.area == pytest.approx(4.0e6)


def test_load_region_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        VectorGeometrySource().load_region(tmp_path / 'absent.gpkg')


@pytest.fixture
def shifted_scenes_dir(tmp_path):
    scenes = tmp_path / 'imagery' / 'landsat'
    scenes.mkdir(parents=True)
    write_scene(scenes / 'LC08_20140401.tif', np.full((1, 2, 2), 0.2), ['SR_B4'])
    write_scene(scenes / 'LC08_20140417.tif', np.full((1, 2, 2), 0.4), ['SR_B4'],
                origin=(ORIGIN_X + 1000, ORIGIN_Y))
    return tmp_path / 'imagery'


class TestShiftedFootprints:

    def test_scenes_share_union_grid(self, shifted_scenes_dir):
        series = GeoTiffImagerySource(shifted_scenes_dir).fetch('LC08', ['SR_B4'], (2014, 2014))

        first, second = [observation.raster for observation in series]
        assert first.shape == second.shape == (1, 2, 3)
        assert first.bounds == pytest.approx((ORIGIN_X, ORIGIN_Y - 2000, ORIGIN_X + 3000, ORIGIN_Y))
        assert first.valid_mask[0].tolist() == [[True, True, False]] * 2
        assert second.valid_mask[0].tolist() == [[False, True, True]] * 2
        assert float(second.array[0, 0, 2]) == pytest.approx(0.4)

    def test_union_grid_restricted_to_region(self, shifted_scenes_dir):
        region = Region.from_bounds(ORIGIN_X + 1000, ORIGIN_Y - 2000, ORIGIN_X + 3000, ORIGIN_Y, crs=CRS)

        series = GeoTiffImagerySource(shifted_scenes_dir).fetch('LC08', ['SR_B4'], (2014, 2014), region)

        assert series.grid.shape == (2, 2)
        first, second = [observation.raster for observation in series]
        assert first.valid_mask[0].tolist() == [[True, False]] * 2
        assert second.valid_mask.all()

    def test_median_composite_over_shifted_scenes(self, shifted_scenes_dir):
        series = GeoTiffImagerySource(shifted_scenes_dir).fetch('LC08', ['SR_B4'], (2014, 2014))
        median = composite(series, '2014-04-01', '2014-05-01', reducer='median')
        assert median.array[0, 0].tolist() == pytest.approx([0.2, 0.3, 0.4])
        assert median.valid_mask.all()
