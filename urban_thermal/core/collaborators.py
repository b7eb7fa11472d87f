"""
Imagery and vector geometry collaborators.

:class:`ImagerySource` is the seam to whatever catalog serves satellite
scenes. Two implementations are provided:

- :class:`GeoTiffImagerySource` reads a directory of single-date GeoTIFFs
  named ``<SENSOR>_<YYYYMMDD>*.tif`` whose band descriptions carry the
  band names (e.g. ``LST_Day_1km``, ``QC_Day``).
- :class:`InMemoryImagerySource` serves pre-built time series (tests, notebooks).

Author: Urban Thermal Analysis Team
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

import rasterio
from rasterio.errors import RasterioIOError
from shapely.geometry import box

from shared_utils import find_files, get_logger

from .exceptions import ImagerySourceError, SceneNotFoundError
from .raster import Raster, RasterTimeSeries, Region
from .resolution_alignment import common_grid, regrid

logger = get_logger('collaborators')

YearRange = Tuple[int, int]

SCENE_DATE_PATTERN = re.compile(r'_(\d{8})(?:[_.]|$)')


class ImagerySource(ABC):
    """Serves raster time series by sensor, bands and calendar-year range."""

    @abstractmethod
    def fetch(self, sensor_id: str, band_names: Sequence[str], year_range: YearRange,
              region: Optional[Region] = None) -> RasterTimeSeries:
        """
        Fetch all scenes of ``sensor_id`` acquired in ``year_range`` (inclusive).

        Raises:
            ImagerySourceError: If the scenes cannot be delivered
        """


def _year_window(year_range: YearRange) -> Tuple[datetime, datetime]:
    first, last = year_range
    if first > last:
        raise ValueError(f"Invalid year range {year_range}")
    return datetime(first, 1, 1), datetime(last + 1, 1, 1)


class GeoTiffImagerySource(ImagerySource):
    """
    Imagery source backed by a directory of GeoTIFF scenes.

    Args:
        directory: Root directory searched recursively
        suffix: Scene file extension

    Examples:
        >>> source = GeoTiffImagerySource('data/raw/imagery')
        >>> series = source.fetch('MOD11A2', ['LST_Day_1km', 'QC_Day'], (2003, 2024))
    """

    def __init__(self, directory: Union[str, Path], suffix: str = '.tif'):
        self.directory = Path(directory)
        self.suffix = suffix

    def scene_dates(self, sensor_id: str) -> Dict[Path, datetime]:
        """Acquisition date of every scene file of ``sensor_id``."""
        dates = {}
        for path in find_files(self.directory, f"{sensor_id}_*{self.suffix}"):
            match = SCENE_DATE_PATTERN.search(path.name[len(sensor_id):])
            if not match:
                logger.warning(f"Skipping {path.name}: no _YYYYMMDD acquisition date")
                continue
            dates[path] = datetime.strptime(match.group(1), '%Y%m%d')
        return dates

    def _read_scene(self, path: Path, band_names: Sequence[str],
                    region: Optional[Region]) -> Optional[Raster]:
        with rasterio.open(path) as src:
            if region is not None:
                footprint = box(*src.bounds)
                if not footprint.intersects(region.geometry_in(src.crs)):
                    return None

            descriptions = list(src.descriptions)
            missing = [name for name in band_names if name not in descriptions]
            if missing:
                raise SceneNotFoundError(f"{path.name} lacks bands {missing} (has {descriptions})")

            indexes = [descriptions.index(name) + 1 for name in band_names]
            data = src.read(indexes, masked=True)
            return Raster(data, src.transform, src.crs, band_names)

    def fetch(self, sensor_id: str, band_names: Sequence[str], year_range: YearRange,
              region: Optional[Region] = None) -> RasterTimeSeries:
        start, end = _year_window(year_range)
        candidates = {p: t for p, t in self.scene_dates(sensor_id).items() if start <= t < end}
        if not candidates:
            raise SceneNotFoundError(
                f"No {sensor_id} scenes for years {year_range[0]}-{year_range[1]} in {self.directory}"
            )

        pairs = []
        for path, timestamp in sorted(candidates.items(), key=lambda item: item[1]):
            try:
                raster = self._read_scene(path, band_names, region)
            except RasterioIOError as e:
                raise ImagerySourceError(f"Could not read {path}: {e}")
            if raster is not None:
                pairs.append((timestamp, raster))

        if not pairs:
            raise SceneNotFoundError(
                f"No {sensor_id} scenes for years {year_range[0]}-{year_range[1]} "
                f"intersect the study region"
            )

        # Footprints differ between acquisitions; put every scene on one grid
        grids = [raster.grid for _, raster in pairs]
        bounds = region.bounds_in(grids[0].crs) if region is not None else None
        grid = common_grid(grids, bounds)
        pairs = [(timestamp, regrid(raster, grid)) for timestamp, raster in pairs]

        logger.info(f"Loaded {len(pairs)} {sensor_id} scenes for {year_range[0]}-{year_range[1]} "
                    f"on a {grid.width}x{grid.height} grid")
        return RasterTimeSeries.from_pairs(pairs)


class InMemoryImagerySource(ImagerySource):
    """
    Imagery source serving time series held in memory.

    Args:
        series_by_sensor: Sensor id -> full time series with all bands
    """

    def __init__(self, series_by_sensor: Dict[str, RasterTimeSeries]):
        self.series_by_sensor = dict(series_by_sensor)

    def fetch(self, sensor_id: str, band_names: Sequence[str], year_range: YearRange,
              region: Optional[Region] = None) -> RasterTimeSeries:
        if sensor_id not in self.series_by_sensor:
            raise SceneNotFoundError(f"No series registered for sensor '{sensor_id}'")
        start, end = _year_window(year_range)
        series = self.series_by_sensor[sensor_id].filter_date(start, end)
        return series.map(lambda raster: raster.select(*band_names), band_names=band_names)


class VectorGeometrySource:
    """
    Supplies the study-area :class:`Region` from a vector file.

    Examples:
        >>> region = VectorGeometrySource().load_region("data/raw/study_area/aoi.gpkg")
    """

    def __init__(self, layer: Optional[str] = None):
        self.layer = layer

    def load_region(self, path: Union[str, Path]) -> Region:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Study area file not found: {path}")
        region = Region.from_file(path, self.layer)
        logger.info(f"Study area loaded from {path.name} ({region.crs})")
        return region
