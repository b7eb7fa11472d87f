"""
Export sinks for analysis rasters.

Author: Urban Thermal Analysis Team
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import rioxarray  # noqa: F401  (registers the .rio accessor)
import xarray as xr
from rasterio.errors import RasterioIOError

from shared_utils import ensure_directory, get_logger

from .exceptions import ExportError
from .raster import Raster, Region
from .region_statistics import sample_at_scale
from .resolution_alignment import DEFAULT_MAX_PIXELS

logger = get_logger('export')

DEFAULT_MAX_PIXELS_CAP = 1e13


def _check_pixel_cap(raster: Raster, name: str, max_pixels_cap: float) -> None:
    n_pixels = raster.height * raster.width
    if n_pixels > max_pixels_cap:
        raise ExportError(f"Export '{name}' has {n_pixels} pixels, above the cap of {max_pixels_cap:g}")


class ExportSink(ABC):
    """Receives finished rasters. Write-only, nothing is read back."""

    @abstractmethod
    def write(self, raster: Raster, name: str, folder: str, region: Optional[Region],
              scale: float, max_pixels_cap: float = DEFAULT_MAX_PIXELS_CAP) -> str:
        """
        Persist ``raster`` resampled to ``scale`` and clipped to ``region``.

        Returns:
            str: Identifier of the written product (path or key)

        Raises:
            ExportError: If the export exceeds ``max_pixels_cap`` or fails
        """


class GeoTiffExportSink(ExportSink):
    """
    Writes float32 GeoTIFFs under ``<output_dir>/<folder>/<name>.tif``.

    Invalid pixels are written as ``nodata_value``; the sentinel exists only
    inside the file, in memory invalid pixels stay masked.
    """

    def __init__(self, output_dir: Union[str, Path], nodata_value: float = -9999.0,
                 compress: Optional[str] = 'lzw', max_pixels: int = DEFAULT_MAX_PIXELS):
        self.output_dir = Path(output_dir)
        self.nodata_value = nodata_value
        self.compress = compress
        self.max_pixels = max_pixels

    def _to_dataarray(self, raster: Raster) -> xr.DataArray:
        transform = raster.transform
        xs = transform.c + transform.a * (np.arange(raster.width) + 0.5)
        ys = transform.f + transform.e * (np.arange(raster.height) + 0.5)

        data = xr.DataArray(
            raster.filled(self.nodata_value).astype(np.float32),
            dims=('band', 'y', 'x'),
            coords={'band': np.arange(1, raster.count + 1), 'y': ys, 'x': xs},
            attrs={'long_name': list(raster.band_names)},
        )
        data.rio.write_crs(raster.crs, inplace=True)
        data.rio.write_transform(transform, inplace=True)
        data.rio.write_nodata(np.float32(self.nodata_value), inplace=True)
        return data

    def write(self, raster: Raster, name: str, folder: str, region: Optional[Region],
              scale: float, max_pixels_cap: float = DEFAULT_MAX_PIXELS_CAP) -> str:
        output = sample_at_scale(raster, region, scale, max_pixels=self.max_pixels)
        _check_pixel_cap(output, name, max_pixels_cap)

        output_dir = ensure_directory(self.output_dir / folder)
        savepath = output_dir / f"{name}.tif"

        options = {'dtype': 'float32'}
        if self.compress:
            options['compress'] = self.compress

        try:
            self._to_dataarray(output).rio.to_raster(savepath, driver='GTiff', **options)
        except (RasterioIOError, OSError) as e:
            raise ExportError(f"Writing {savepath} failed: {e}")

        logger.info(f"Saved {name} to: {savepath}")
        return str(savepath)


@dataclass
class ExportRecord:
    name: str
    folder: str
    raster: Raster
    scale: float


class MemoryExportSink(ExportSink):
    """Keeps exported rasters in memory (tests and dry runs)."""

    def __init__(self, max_pixels: int = DEFAULT_MAX_PIXELS):
        self.max_pixels = max_pixels
        self.records: List[ExportRecord] = []

    def write(self, raster: Raster, name: str, folder: str, region: Optional[Region],
              scale: float, max_pixels_cap: float = DEFAULT_MAX_PIXELS_CAP) -> str:
        output = sample_at_scale(raster, region, scale, max_pixels=self.max_pixels)
        _check_pixel_cap(output, name, max_pixels_cap)
        self.records.append(ExportRecord(name, folder, output, scale))
        return f"{folder}/{name}"

    @property
    def by_name(self) -> Dict[str, Raster]:
        return {record.name: record.raster for record in self.records}
