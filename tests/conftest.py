"""Shared fixtures: synthetic rasters on a small UTM grid and a test configuration."""

import copy

import numpy as np
import pytest
from rasterio.transform import from_origin

from urban_thermal.core.raster import Raster, Region

CRS = 'EPSG:32643'
ORIGIN_X = 500000.0
ORIGIN_Y = 3003000.0

TEST_CONFIG = {
    'logging': {'level': 'WARNING', 'log_file': None},
    'study_period': {'start_year': 2010, 'end_year': 2010},
    'seasons': [
        {'name': 'Summer', 'start': '03-01', 'end': '06-01', 'start_year_offset': 0},
        {'name': 'Winter', 'start': '12-01', 'end': '03-01', 'start_year_offset': -1},
    ],
    'modis_lst': {
        'sensor_id': 'MOD11A2',
        'lst_band': 'LST_Day_1km',
        'qc_band': 'QC_Day',
        'scale': 0.02,
        'offset': -273.15,
        'qc_bitfield': {'mask_bits': 3, 'shift': 0, 'threshold': 1},
    },
    'landsat': {
        'ndvi_window': {'start': '03-01', 'end': '05-31'},
        'reducer': 'median',
        'families': {
            'landsat_457': {
                'collections': ['LT04', 'LT05', 'LE07'],
                'red_band': 'SR_B3', 'nir_band': 'SR_B4', 'qa_band': 'QA_PIXEL',
                'cloud_bits': [1, 5, 7], 'scale': 1.0, 'offset': 0.0,
            },
            'landsat_89': {
                'collections': ['LC08', 'LC09'],
                'red_band': 'SR_B4', 'nir_band': 'SR_B5', 'qa_band': 'QA_PIXEL',
                'cloud_bits': [1, 3, 4], 'scale': 1.0, 'offset': 0.0,
            },
        },
        'sensor_policy': {2004: ['LT05'], 2014: ['LC08'], 2024: ['LC08', 'LC09']},
        'default_collections': ['LC08'],
    },
    'analysis': {
        'scale': 1000,
        'max_pixels': 1024,
        'correlation_years': [2014],
        'scatter_sample_size': 500,
        'scatter_seed': 42,
    },
    'export': {'seasonal_folder': 'Seasonal_LST', 'utfvi_folder': 'UTFVI', 'max_pixels_cap': 1.0e13},
    'visualization': {'enabled': False},
    'compute': {'num_workers': 1, 'max_retries': 1, 'retry_delay': 0},
}


def make_raster(values, scale=1000.0, band_names=('LST',), valid=None,
                origin=(ORIGIN_X, ORIGIN_Y), crs=CRS):
    """Raster from a 2-D or 3-D array on a north-up grid."""
    return Raster.from_array(np.asarray(values, dtype=float),
                             from_origin(origin[0], origin[1], scale, scale),
                             crs, band_names, valid)


def region_for(raster):
    """Region covering the full extent of ``raster``."""
    return Region.from_bounds(*raster.bounds, crs=raster.crs)


@pytest.fixture
def config():
    return copy.deepcopy(TEST_CONFIG)


@pytest.fixture
def grid_3x3():
    return make_raster(np.zeros((3, 3)))


@pytest.fixture
def region_3x3(grid_3x3):
    return region_for(grid_3x3)
